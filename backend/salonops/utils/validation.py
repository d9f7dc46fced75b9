"""Request payload validation helpers with consistent 400 semantics."""
from __future__ import annotations
from typing import Any, Dict, Iterable, Optional
from salonops.errors import ValidationError


def validate_choice(value: Any, allowed: Iterable[str], field_name: str) -> str:
    """Return value if it is one of ``allowed``; raise ValidationError otherwise."""
    allowed = tuple(allowed)
    if value not in allowed:
        raise ValidationError(f"{field_name} must be one of {', '.join(allowed)}")
    return value


def require_fields(data: Dict[str, Any], *names: str) -> None:
    missing = [n for n in names if data.get(n) in (None, '')]
    if missing:
        raise ValidationError(f"{', '.join(missing)} required")


def require_str(data: Dict[str, Any], name: str, required: bool = True) -> Optional[str]:
    """Return ``data[name]`` as a string; a missing optional value comes back as None."""
    value = data.get(name)
    if value is None or value == '':
        if required:
            raise ValidationError(f'{name} required')
        return value
    if not isinstance(value, str):
        raise ValidationError(f'{name} must be a string')
    return value


def parse_int_id(value: Any, field_name: str) -> Optional[int]:
    """None passes through; anything else must be an integer (or an all-digit string)."""
    if value is None:
        return None
    # bool is an int subclass and never a valid id
    if isinstance(value, bool):
        raise ValidationError(f'{field_name} must be an integer')
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError(f'{field_name} must be an integer')


def load_reference(session, model, value: Any, field_name: str, not_found: str) -> Optional[int]:
    """Parse an id with ``parse_int_id`` and 404 when no ``model`` row carries it."""
    from flask import abort
    ref_id = parse_int_id(value, field_name)
    if ref_id is not None and session.get(model, ref_id) is None:
        abort(404, description=not_found)
    return ref_id


def json_body() -> Dict[str, Any]:
    from flask import request
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('JSON object body required')
    return data


__all__ = ['validate_choice', 'require_fields', 'require_str', 'parse_int_id', 'load_reference', 'json_body']
