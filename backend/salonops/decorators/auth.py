from functools import wraps
from typing import Any
from flask import current_app, g
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from salonops import get_db, get_authz
from salonops.errors import Unauthenticated, Forbidden
from salonops.models.authz import User
from salonops.services.policy import Principal


def current_principal() -> Principal:
    """Load (once per request) the principal behind the bearer token.

    The user row is re-read on every request so permission edits and
    deactivation apply without waiting for token expiry.
    """
    principal = g.get('principal')
    if principal is not None:
        return principal
    verify_jwt_in_request()
    identity = get_jwt_identity()
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        raise Unauthenticated()
    stmt = (
        select(User)
        .where(User.id == user_id)
        .options(selectinload(User.permissions))
        .execution_options(populate_existing=True)
    )
    user = get_db().execute(stmt).scalar_one_or_none()
    if user is None or not user.is_active:
        raise Unauthenticated()
    principal = get_authz().principal_from_user(user)
    g.principal = principal
    return principal


def _deny(principal: Principal, message: str):
    current_app.logger.info('Access denied for user %s (%s): %s', principal.id, principal.role, message)
    raise Forbidden(message)


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        current_principal()
        return fn(*args, **kwargs)
    return wrapper


def require_permission(module: str, action: str):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            principal = current_principal()
            if not get_authz().authorize(principal, module, action):
                _deny(principal, f'Insufficient permissions for {action} on {module}')
            return fn(*args, **kwargs)
        return wrapper
    return outer


def require_module(module: str):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            principal = current_principal()
            if not get_authz().check_module_access(principal, module):
                _deny(principal, f'Access denied to {module} module')
            return fn(*args, **kwargs)
        return wrapper
    return outer


def require_role(*roles: str):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            principal = current_principal()
            if roles and principal.role not in roles:
                _deny(principal, 'Insufficient permissions')
            return fn(*args, **kwargs)
        return wrapper
    return outer


def own_data_guard(resource_owner_id: Any = None):
    """Ownership check for client-portal principals; staff and admins always pass."""
    principal = current_principal()
    if not get_authz().ensure_own_data(principal, resource_owner_id):
        _deny(principal, 'Access denied')
