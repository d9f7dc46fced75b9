"""Audit logging decorator for mutating route handlers.

    @audit_log('ONBOARDING.CREATE', entity='Onboarding', entity_id_key='id', meta_keys=['status', 'progress'])
    def create_onboarding(): ...

entity_id_key picks the id out of the returned JSON object; entity_id_arg
falls back to a path parameter. meta_builder(data, kwargs) overrides
meta_keys. Views may return dict, (dict, status) or (dict, status, headers).
Audit failures are logged and never change the response.
"""
from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Iterable, Optional

from flask import current_app
from salonops.services.audit import add_audit
from salonops import get_db


def _payload(rv: Any):
    if isinstance(rv, tuple) and rv:
        return rv[0]
    return rv


def audit_log(
    action: str,
    *,
    entity: Optional[str] = None,
    entity_id_key: Optional[str] = None,
    entity_id_arg: Optional[str] = None,
    meta_keys: Optional[Iterable[str]] = None,
    meta_builder: Optional[Callable[[dict, dict], dict]] = None,
):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            rv = fn(*args, **kwargs)
            data = _payload(rv)
            try:
                data = data if isinstance(data, dict) else {}
                entity_id = data.get(entity_id_key) if entity_id_key else None
                if entity_id is None and entity_id_arg:
                    entity_id = kwargs.get(entity_id_arg)
                if meta_builder:
                    meta = meta_builder(data, kwargs)
                elif meta_keys:
                    meta = {k: data.get(k) for k in meta_keys if k in data}
                else:
                    meta = None
                add_audit(action, entity, entity_id, meta)
                get_db().commit()
            except Exception:
                current_app.logger.exception('Audit write failed for %s', action)
                get_db().rollback()
            return rv
        return wrapper
    return outer
