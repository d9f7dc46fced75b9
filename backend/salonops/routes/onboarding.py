from __future__ import annotations
from flask import Blueprint, request, abort, current_app
from sqlalchemy import select, func, or_, false
from salonops import get_db
from salonops.constants.permissions import CLIENT_USER_TYPE
from salonops.decorators.auth import current_principal, own_data_guard, require_permission
from salonops.decorators.audit import audit_log
from salonops.errors import ValidationError
from salonops.models.authz import User
from salonops.models.client import Client
from salonops.models.onboarding import Onboarding
from salonops.services import onboarding_progress as progress_engine
from salonops.services.reminders import ATTENTION_STATUSES, ATTENTION_WINDOW, build_smart_reminders
from salonops.utils.dates import utcnow, iso, parse_datetime
from salonops.utils.listing import apply_pagination, build_list_payload
from salonops.utils.sorting import apply_multi_sort
from salonops.utils.validation import json_body, load_reference, require_str, validate_choice

onboarding_bp = Blueprint('onboarding', __name__)

SORTABLE = {
    'created_at': Onboarding.created_at,
    'updated_at': Onboarding.updated_at,
    'estimated_completion_date': Onboarding.estimated_completion_date,
    'progress': Onboarding.progress,
    'status': Onboarding.status,
    'priority': Onboarding.priority,
    'id': Onboarding.id,
}

# stored attributes writable through create/update besides the stage blobs
_WRITABLE = ('priority', 'estimated_completion_date', 'assigned_to_id', 'client_id', 'tags', 'stage_deadlines')


def _onboarding_json(o: Onboarding, detail: bool = False):
    now = utcnow()
    days = progress_engine.record_days_remaining(o, now)
    body = {
        'id': o.id,
        'client_id': o.client_id,
        'company_name': o.company_name,
        'progress': o.progress,
        'status': o.status,
        'priority': o.priority,
        'estimated_completion_date': iso(o.estimated_completion_date),
        'actual_completion_date': iso(o.actual_completion_date),
        'completed_at': iso(o.completed_at),
        'assigned_to_id': o.assigned_to_id,
        'created_by_id': o.created_by_id,
        'last_updated_by_id': o.last_updated_by_id,
        'tags': list(o.tags or []),
        'days_remaining': days,
        'urgency_level': progress_engine.urgency_level(days),
        'created_at': iso(o.created_at),
        'updated_at': iso(o.updated_at),
    }
    if detail:
        for stage in progress_engine.STAGES:
            body[stage] = progress_engine.stage_data(o, stage)
        body['stage_deadlines'] = dict(o.stage_deadlines or {})
        body['notes'] = list(o.notes or [])
        body['stage_progress'] = progress_engine.stage_progress(o)
        body['next_action'] = progress_engine.next_action(o)
    return body


def _scoped_query(session):
    q = session.query(Onboarding)
    principal = current_principal()
    if principal.user_type == CLIENT_USER_TYPE:
        # an unlinked portal account sees nothing
        q = q.filter(Onboarding.client_id == principal.client_id) if principal.client_id is not None else q.filter(false())
    return q


def _load_onboarding(onboarding_id: int) -> Onboarding:
    o = get_db().execute(select(Onboarding).where(Onboarding.id == onboarding_id)).scalar_one_or_none()
    if not o:
        abort(404, description='Onboarding record not found')
    return o


def _stage_blob(value, stage: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f'{stage} must be an object')
    # always hand the column a fresh dict so the change is tracked
    return dict(value)


def _apply_payload(o: Onboarding, data: dict):
    """Copy stage blobs and writable attributes; computed fields are never taken from input."""
    for stage in progress_engine.STAGES:
        if stage in data:
            setattr(o, stage, _stage_blob(data[stage], stage))
    for field in _WRITABLE:
        if field not in data:
            continue
        value = data[field]
        if field == 'priority':
            value = validate_choice(value, Onboarding.PRIORITIES, 'priority')
        elif field == 'estimated_completion_date':
            parsed = parse_datetime(value)
            if value and parsed is None:
                raise ValidationError('estimated_completion_date must be a date')
            value = parsed
        elif field == 'tags':
            if not isinstance(value, list):
                raise ValidationError('tags must be a list')
            value = list(value)
        elif field == 'stage_deadlines':
            if not isinstance(value, dict):
                raise ValidationError('stage_deadlines must be an object')
            value = dict(value)
        elif field == 'client_id':
            value = load_reference(get_db(), Client, value, 'client_id', 'Client not found')
        elif field == 'assigned_to_id':
            value = load_reference(get_db(), User, value, 'assigned_to_id', 'User not found')
        setattr(o, field, value)


@onboarding_bp.get('/smart-reminders')
@require_permission('clients', 'read')
def smart_reminders():
    session = get_db()
    now = utcnow()
    q = _scoped_query(session).filter(Onboarding.status.in_(ATTENTION_STATUSES)).filter(
        or_(
            Onboarding.estimated_completion_date <= now + ATTENTION_WINDOW,
            Onboarding.updated_at <= now - ATTENTION_WINDOW,
        )
    )
    records = q.order_by(Onboarding.estimated_completion_date.asc(), Onboarding.id.asc()).all()
    reminders = build_smart_reminders(records, now)
    return {'data': reminders, 'total': len(reminders)}


@onboarding_bp.get('/stats')
@require_permission('clients', 'read')
def onboarding_stats():
    session = get_db()
    q = _scoped_query(session).with_entities(Onboarding.status, func.count(Onboarding.id)).group_by(Onboarding.status)
    result = {'total': 0}
    for status in progress_engine.ALL_STATUSES:
        result[status] = 0
    for status, count in q.all():
        result[status] = int(count)
        result['total'] += int(count)
    return result


@onboarding_bp.get('')
@require_permission('clients', 'read')
def list_onboardings():
    session = get_db()
    q = _scoped_query(session)
    status = request.args.get('status')
    business_type = request.args.get('business_type')
    assigned_to = request.args.get('assigned_to')
    search = request.args.get('search')
    if status:
        q = q.filter(Onboarding.status == status)
    if business_type:
        q = q.filter(Onboarding.business_info['business_type'].as_string() == business_type)
    if assigned_to:
        try:
            q = q.filter(Onboarding.assigned_to_id == int(assigned_to))
        except ValueError:
            abort(400, description='assigned_to must be int')
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(
            Onboarding.business_info['company_name'].as_string().ilike(pattern),
            Onboarding.business_info['contact_person_title'].as_string().ilike(pattern),
            Onboarding.business_info['email_address'].as_string().ilike(pattern),
        ))
    q = apply_multi_sort(q, request.args.get('sort'), SORTABLE, (Onboarding.created_at.desc(), Onboarding.id.desc()))
    paged_q, total, limit, offset = apply_pagination(q)
    return build_list_payload([_onboarding_json(o) for o in paged_q.all()], total, limit, offset)


@onboarding_bp.get('/<int:onboarding_id>')
@require_permission('clients', 'read')
def get_onboarding(onboarding_id: int):
    o = _load_onboarding(onboarding_id)
    if o.client_id is None and current_principal().user_type == CLIENT_USER_TYPE:
        abort(404, description='Onboarding record not found')
    own_data_guard(o.client_id)
    return _onboarding_json(o, detail=True)


@onboarding_bp.post('')
@require_permission('clients', 'create')
@audit_log('ONBOARDING.CREATE', entity='Onboarding', entity_id_key='id', meta_keys=['status', 'progress', 'company_name'])
def create_onboarding():
    data = json_body()
    principal = current_principal()
    o = Onboarding(created_by_id=principal.id, last_updated_by_id=principal.id)
    _apply_payload(o, data)
    session = get_db()
    session.add(o)
    session.commit()
    current_app.logger.info('Onboarding %s created by user %s', o.id, principal.id)
    return _onboarding_json(o, detail=True), 201


@onboarding_bp.put('/<int:onboarding_id>')
@require_permission('clients', 'update')
@audit_log('ONBOARDING.UPDATE', entity='Onboarding', entity_id_key='id', meta_keys=['status', 'progress'])
def update_onboarding(onboarding_id: int):
    o = _load_onboarding(onboarding_id)
    _apply_payload(o, json_body())
    o.last_updated_by_id = current_principal().id
    get_db().commit()
    return _onboarding_json(o, detail=True)


@onboarding_bp.patch('/<int:onboarding_id>/stage')
@require_permission('clients', 'update')
@audit_log(
    'ONBOARDING.STAGE.UPDATE',
    entity='Onboarding',
    entity_id_key='id',
    meta_builder=lambda data, kw: {'stage': (request.get_json(silent=True) or {}).get('stage'), 'progress': data.get('progress')},
)
def update_stage(onboarding_id: int):
    data = json_body()
    stage = data.get('stage')
    blob = data.get('data')
    if not stage or blob is None:
        abort(400, description='Stage and data are required')
    if stage not in progress_engine.STAGES:
        abort(400, description='Invalid stage specified')
    o = _load_onboarding(onboarding_id)
    setattr(o, stage, _stage_blob(blob, 'data'))
    o.last_updated_by_id = current_principal().id
    get_db().commit()
    return _onboarding_json(o, detail=True)


@onboarding_bp.post('/<int:onboarding_id>/notes')
@require_permission('clients', 'update')
def add_note(onboarding_id: int):
    data = json_body()
    content = (require_str(data, 'content', required=False) or '').strip()
    if not content:
        abort(400, description='content required')
    o = _load_onboarding(onboarding_id)
    principal = current_principal()
    note = {
        'content': content,
        'is_internal': bool(data.get('is_internal', False)),
        'author_id': principal.id,
        'created_at': iso(utcnow()),
    }
    o.notes = list(o.notes or []) + [note]
    o.last_updated_by_id = principal.id
    get_db().commit()
    return note, 201


@onboarding_bp.delete('/<int:onboarding_id>')
@require_permission('clients', 'delete')
@audit_log('ONBOARDING.DELETE', entity='Onboarding', entity_id_arg='onboarding_id')
def delete_onboarding(onboarding_id: int):
    session = get_db()
    o = _load_onboarding(onboarding_id)
    session.delete(o)
    session.commit()
    return {'message': 'Onboarding record deleted successfully'}
