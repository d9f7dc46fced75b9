from __future__ import annotations
from typing import Any, Dict, Optional
from flask import g
from salonops import get_db
from salonops.models.audit import AuditLog


def add_audit(action: str, entity: Optional[str] = None, entity_id: Optional[Any] = None, meta: Optional[Dict[str, Any]] = None):
    """Stage an audit log entry in the current DB session.

    Actor details come from the principal loaded by the auth decorators;
    outside a gated request the actor is recorded as 0.
    No commit here; caller's transaction boundary controls durability.
    """
    principal = g.get('principal')
    log = AuditLog(
        actor_user_id=(principal.id if principal and principal.id is not None else 0),
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        actor_snapshot={'role': principal.role, 'user_type': principal.user_type} if principal else {},
        meta=meta or {},
    )
    get_db().add(log)
    return log
