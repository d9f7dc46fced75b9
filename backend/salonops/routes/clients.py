from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select
from salonops import get_db
from salonops.constants.permissions import CLIENT_USER_TYPE
from salonops.decorators.auth import current_principal, own_data_guard, require_module, require_permission
from salonops.decorators.audit import audit_log
from salonops.models.authz import User
from salonops.models.client import Client
from salonops.utils.dates import iso
from salonops.utils.listing import apply_pagination, build_list_payload
from salonops.utils.sorting import apply_multi_sort
from salonops.utils.validation import json_body, load_reference, require_fields, require_str, validate_choice

clients_bp = Blueprint('clients', __name__)

SORTABLE = {
    'business_name': Client.business_name,
    'onboarding_status': Client.onboarding_status,
    'created_at': Client.created_at,
    'id': Client.id,
}


def _client_json(c: Client):
    return {
        'id': c.id,
        'business_name': c.business_name,
        'business_type': c.business_type,
        'contact_name': c.contact_name,
        'contact_phone': c.contact_phone,
        'contact_email': c.contact_email,
        'onboarding_status': c.onboarding_status,
        'assigned_sales_agent_id': c.assigned_sales_agent_id,
        'is_active': c.is_active,
        'created_at': iso(c.created_at),
        'updated_at': iso(c.updated_at),
    }


def _load_client(client_id: int) -> Client:
    c = get_db().execute(select(Client).where(Client.id == client_id)).scalar_one_or_none()
    if not c:
        abort(404, description='Client not found')
    return c


@clients_bp.get('')
@require_module('clients')
def list_clients():
    session = get_db()
    principal = current_principal()
    q = session.query(Client)
    if principal.user_type == CLIENT_USER_TYPE:
        # portal accounts only ever see their own business
        q = q.filter(Client.id == principal.client_id)
    status = request.args.get('onboarding_status')
    business_type = request.args.get('business_type')
    search = request.args.get('search')
    if status:
        q = q.filter(Client.onboarding_status == status)
    if business_type:
        q = q.filter(Client.business_type == business_type)
    if search:
        q = q.filter(Client.business_name.ilike(f"%{search}%"))
    q = apply_multi_sort(q, request.args.get('sort'), SORTABLE, (Client.id.desc(),))
    paged_q, total, limit, offset = apply_pagination(q)
    return build_list_payload([_client_json(c) for c in paged_q.all()], total, limit, offset)


@clients_bp.post('')
@require_permission('clients', 'create')
@audit_log('CLIENT.CREATE', entity='Client', entity_id_key='id', meta_keys=['business_name', 'business_type'])
def create_client():
    data = json_body()
    require_fields(data, 'business_name', 'business_type', 'contact_name', 'contact_phone', 'contact_email')
    business_type = validate_choice(data['business_type'], Client.BUSINESS_TYPES, 'business_type')
    status = validate_choice(data.get('onboarding_status', 'pending'), Client.ONBOARDING_STATUSES, 'onboarding_status')
    session = get_db()
    agent_id = load_reference(session, User, data.get('assigned_sales_agent_id'), 'assigned_sales_agent_id', 'User not found')
    c = Client(
        business_name=require_str(data, 'business_name'),
        business_type=business_type,
        contact_name=require_str(data, 'contact_name'),
        contact_phone=require_str(data, 'contact_phone'),
        contact_email=require_str(data, 'contact_email').lower(),
        onboarding_status=status,
        assigned_sales_agent_id=agent_id or current_principal().id,
    )
    session.add(c)
    session.commit()
    return _client_json(c), 201


@clients_bp.get('/<int:client_id>')
@require_module('clients')
def get_client(client_id: int):
    c = _load_client(client_id)
    own_data_guard(c.id)
    return _client_json(c)


@clients_bp.put('/<int:client_id>')
@require_permission('clients', 'update')
@audit_log('CLIENT.UPDATE', entity='Client', entity_id_key='id', meta_keys=['onboarding_status', 'is_active'])
def update_client(client_id: int):
    c = _load_client(client_id)
    data = json_body()
    if 'business_type' in data:
        c.business_type = validate_choice(data['business_type'], Client.BUSINESS_TYPES, 'business_type')
    if 'onboarding_status' in data:
        c.onboarding_status = validate_choice(data['onboarding_status'], Client.ONBOARDING_STATUSES, 'onboarding_status')
    for field in ('business_name', 'contact_name', 'contact_phone'):
        if field in data:
            setattr(c, field, require_str(data, field))
    if 'contact_email' in data:
        c.contact_email = require_str(data, 'contact_email').lower()
    if 'assigned_sales_agent_id' in data:
        c.assigned_sales_agent_id = load_reference(
            get_db(), User, data['assigned_sales_agent_id'], 'assigned_sales_agent_id', 'User not found',
        )
    if 'is_active' in data:
        c.is_active = bool(data['is_active'])
    get_db().commit()
    return _client_json(c)
