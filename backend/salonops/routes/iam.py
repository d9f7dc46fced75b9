from flask import Blueprint, request, abort, current_app
from flask_jwt_extended import create_access_token
from sqlalchemy import select
from salonops import get_db, get_authz
from salonops.constants.permissions import (
    MODULE_LABELS, ACTION_LABELS, LEVEL_LABELS, ROLE_LABELS, CLIENT_ACCOUNT_GRANTS, DEPARTMENTS,
)
from salonops.decorators.auth import current_principal, login_required, require_permission, require_role
from salonops.decorators.audit import audit_log
from salonops.errors import Unauthenticated, ValidationError
from salonops.models.audit import AuditLog
from salonops.models.authz import User, UserPermission
from salonops.models.client import Client
from salonops.utils.dates import utcnow, iso
from salonops.utils.listing import apply_pagination, build_list_payload
from salonops.utils.validation import json_body, parse_int_id, require_fields, require_str, validate_choice

iam_bp = Blueprint('iam', __name__)


def _user_json(u: User):
    return {
        'id': u.id,
        'name': u.name,
        'email': u.email,
        'role': u.role,
        'user_type': u.user_type,
        'department': u.department,
        'phone': u.phone,
        'position': u.position,
        'client_id': u.client_id,
        'is_active': u.is_active,
        'last_login': iso(u.last_login),
        'permissions': [
            {'module': p.module, 'actions': list(p.actions or []), 'level': p.level} for p in u.permissions
        ],
    }


def _replace_permissions(user: User, grants):
    # clear first so the (user_id, module) unique constraint holds during flush
    user.permissions.clear()
    get_db().flush()
    for g in grants:
        user.permissions.append(UserPermission(module=g.module, actions=sorted(g.actions), level=g.level))


def _load_user(user_id: int) -> User:
    user = get_db().execute(select(User).where(User.id == user_id)).scalar_one_or_none()
    if not user:
        abort(404, description='User not found')
    return user


@iam_bp.post('/auth/login')
def login():
    data = json_body()
    email = data.get('email'); password = data.get('password')
    if not email or not password:
        abort(400, description='email & password required')
    if not isinstance(email, str) or not isinstance(password, str):
        raise ValidationError('email and password must be strings')
    session = get_db()
    user = session.execute(select(User).where(User.email == email.lower())).scalar_one_or_none()
    if not user or not user.verify_password(password):
        raise Unauthenticated('invalid credentials')
    if not user.is_active:
        raise Unauthenticated('account disabled')
    user.last_login = utcnow()
    session.commit()
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    token = create_access_token(identity=str(user.id), additional_claims={'role': user.role, 'user_type': user.user_type})
    current_app.logger.info('User %s logged in', user.id)
    return {'access_token': token}


@iam_bp.get('/auth/me')
@iam_bp.get('/users/profile/me')
@login_required
def me():
    principal = current_principal()
    user = _load_user(principal.id)
    return {
        'user': _user_json(user),
        'accessible_modules': get_authz().accessible_modules(principal),
        'permissions': [g.as_dict() for g in principal.permissions],
    }


@iam_bp.post('/permissions/check')
@login_required
def check_permission():
    """Decision endpoint for UI affordance gating; same engine as route gating."""
    data = json_body()
    module = data.get('module')
    action = data.get('action') or 'read'
    engine = get_authz()
    principal = current_principal()
    allowed = engine.authorize(principal, module, action)
    return {
        'module': module,
        'action': action,
        'allowed': allowed,
        'module_access': engine.check_module_access(principal, module),
        'level': engine.permission_level(principal, module),
    }


@iam_bp.get('/users')
@require_role('admin')
def list_users():
    session = get_db()
    q = session.query(User)
    user_type = request.args.get('user_type')
    role = request.args.get('role')
    if user_type:
        q = q.filter(User.user_type == user_type)
    if role:
        q = q.filter(User.role == role)
    q = q.order_by(User.created_at.desc(), User.id.desc())
    paged_q, total, limit, offset = apply_pagination(q)
    rows = [_user_json(u) for u in paged_q.all()]
    return build_list_payload(rows, total, limit, offset)


@iam_bp.get('/users/<int:user_id>')
@require_role('admin')
def get_user(user_id: int):
    return _user_json(_load_user(user_id))


@iam_bp.put('/users/<int:user_id>/permissions')
@require_role('admin')
@audit_log(
    'USER.PERMISSIONS.SET',
    entity='User',
    entity_id_key='id',
    meta_builder=lambda data, kw: {
        'role': data.get('role'),
        'user_type': data.get('user_type'),
        'modules': [p['module'] for p in data.get('permissions', [])],
    },
)
def update_user_permissions(user_id: int):
    session = get_db()
    user = _load_user(user_id)
    data = json_body()
    cfg = get_authz().config
    # validate everything before touching the row
    role = cfg.require(data['role'], cfg.roles, 'role') if data.get('role') else None
    user_type = cfg.require(data['user_type'], cfg.user_types, 'user_type') if data.get('user_type') else None
    grants = cfg.parse_grants(data['permissions']) if data.get('permissions') is not None else None
    is_active = data.get('is_active')
    if is_active is not None and not isinstance(is_active, bool):
        raise ValidationError('is_active must be boolean')
    if role:
        user.role = role
    if user_type:
        user.user_type = user_type
    if grants is not None:
        _replace_permissions(user, grants)
    if is_active is not None:
        user.is_active = is_active
    session.commit()
    current_app.logger.info('Permissions updated for user %s', user.id)
    return _user_json(user)


@iam_bp.post('/users/client-account')
@require_role('admin')
@audit_log('USER.CLIENT_ACCOUNT.CREATE', entity='User', entity_id_key='id', meta_keys=['email', 'client_id'])
def create_client_account():
    data = json_body()
    require_fields(data, 'client_id', 'email', 'password')
    email = require_str(data, 'email').lower()
    password = require_str(data, 'password')
    name = require_str(data, 'name', required=False)
    session = get_db()
    client = session.get(Client, parse_int_id(data['client_id'], 'client_id'))
    if not client:
        abort(404, description='Client not found')
    if session.execute(select(User).where(User.email == email)).scalar_one_or_none():
        abort(400, description='User already exists')
    user = User(
        name=name or client.contact_name,
        email=email,
        password_hash='',
        role='client',
        user_type='client',
        client_id=client.id,
    )
    user.set_password(password)
    session.add(user)
    _replace_permissions(user, get_authz().config.parse_grants(CLIENT_ACCOUNT_GRANTS))
    session.commit()
    return _user_json(user), 201


@iam_bp.post('/users')
@require_role('admin')
@audit_log('USER.CREATE', entity='User', entity_id_key='id', meta_keys=['email', 'role', 'user_type'])
def create_user():
    data = json_body()
    require_fields(data, 'name', 'email', 'password')
    name = require_str(data, 'name')
    email = require_str(data, 'email').lower()
    password = require_str(data, 'password')
    phone = require_str(data, 'phone', required=False)
    position = require_str(data, 'position', required=False)
    if len(password) < 6:
        raise ValidationError('password must be at least 6 characters')
    cfg = get_authz().config
    role = cfg.require(data.get('role', 'sales'), cfg.roles, 'role')
    user_type = cfg.require(data.get('user_type', 'staff'), cfg.user_types, 'user_type')
    department = validate_choice(data['department'], DEPARTMENTS, 'department') if data.get('department') else None
    grants = cfg.parse_grants(data.get('permissions'))
    session = get_db()
    if session.execute(select(User).where(User.email == email)).scalar_one_or_none():
        abort(400, description='User already exists')
    user = User(
        name=name, email=email, password_hash='', role=role, user_type=user_type,
        department=department, phone=phone, position=position,
    )
    user.set_password(password)
    session.add(user)
    _replace_permissions(user, grants)
    session.commit()
    return _user_json(user), 201


@iam_bp.get('/config/permissions')
@require_role('admin')
def permission_config():
    def _options(labels):
        return [{'value': k, 'label': v[0], 'description': v[1]} for k, v in labels.items()]
    return {
        'modules': _options(MODULE_LABELS),
        'actions': _options(ACTION_LABELS),
        'levels': _options(LEVEL_LABELS),
        'roles': _options(ROLE_LABELS),
    }


# --- Audit Log Listing ---
@iam_bp.get('/audit/logs')
@require_permission('settings', 'read')
def list_audit_logs():
    session = get_db()
    q = session.query(AuditLog)
    actor = request.args.get('actor_user_id')
    action = request.args.get('action')
    entity = request.args.get('entity')
    entity_id = request.args.get('entity_id')
    if actor:
        try:
            q = q.filter(AuditLog.actor_user_id == int(actor))
        except ValueError:
            abort(400, description='actor_user_id must be int')
    if action:
        q = q.filter(AuditLog.action == action)
    if entity:
        q = q.filter(AuditLog.entity == entity)
    if entity_id:
        q = q.filter(AuditLog.entity_id == entity_id)
    q = q.order_by(AuditLog.id.desc())
    paged_q, total, limit, offset = apply_pagination(q)
    rows = [
        {
            'id': r.id,
            'actor_user_id': r.actor_user_id,
            'action': r.action,
            'entity': r.entity,
            'entity_id': r.entity_id,
            'actor_snapshot': r.actor_snapshot,
            'meta': r.meta,
            'created_at': iso(r.created_at),
        } for r in paged_q.all()
    ]
    return build_list_payload(rows, total, limit, offset)
