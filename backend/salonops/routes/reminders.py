from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select
from salonops import get_db
from salonops.decorators.auth import current_principal, login_required
from salonops.errors import ValidationError
from salonops.models.onboarding import Onboarding
from salonops.models.reminder import Reminder
from salonops.services.reminders import reminder_stats
from salonops.utils.dates import utcnow, iso, parse_datetime
from salonops.utils.listing import request_pagination
from salonops.utils.validation import json_body, load_reference, require_fields, require_str, validate_choice

reminders_bp = Blueprint('reminders', __name__)

STATUS_FILTERS = ('pending', 'completed', 'all')


def _reminder_json(r: Reminder):
    return {
        'id': r.id,
        'title': r.title,
        'description': r.description,
        'type': r.type,
        'priority': r.priority,
        'due_date': iso(r.due_date),
        'is_completed': r.is_completed,
        'is_smart_generated': r.is_smart_generated,
        'onboarding_id': r.onboarding_id,
        'company_name': r.company_name,
        'stage': r.stage,
        'completed_at': iso(r.completed_at),
        'created_at': iso(r.created_at),
    }


def _own_reminder(reminder_id: int) -> Reminder:
    r = get_db().execute(
        select(Reminder).where(Reminder.id == reminder_id, Reminder.created_by == current_principal().id)
    ).scalar_one_or_none()
    if not r:
        abort(404, description='Reminder not found')
    return r


@reminders_bp.get('')
@login_required
def list_reminders():
    status = validate_choice(request.args.get('status', 'pending'), STATUS_FILTERS, 'status')
    limit, offset = request_pagination(default_limit=50)
    q = get_db().query(Reminder).filter(Reminder.created_by == current_principal().id)
    if status == 'pending':
        q = q.filter(Reminder.is_completed.is_(False))
    elif status == 'completed':
        q = q.filter(Reminder.is_completed.is_(True))
    rows = q.order_by(Reminder.due_date.asc(), Reminder.id.asc()).offset(offset).limit(limit).all()
    return {'data': [_reminder_json(r) for r in rows]}


@reminders_bp.get('/stats')
@login_required
def get_reminder_stats():
    rows = get_db().query(Reminder).filter(Reminder.created_by == current_principal().id).all()
    return reminder_stats(rows, utcnow())


@reminders_bp.post('')
@login_required
def create_reminder():
    data = json_body()
    require_fields(data, 'title', 'due_date')
    due = parse_datetime(data['due_date'])
    if due is None:
        raise ValidationError('due_date must be a date')
    session = get_db()
    onboarding_id = load_reference(session, Onboarding, data.get('onboarding_id'), 'onboarding_id', 'Onboarding record not found')
    r = Reminder(
        title=require_str(data, 'title'),
        description=require_str(data, 'description', required=False),
        type=validate_choice(data.get('type', 'custom'), Reminder.TYPES, 'type'),
        priority=validate_choice(data.get('priority', 'medium'), Reminder.PRIORITIES, 'priority'),
        due_date=due,
        onboarding_id=onboarding_id,
        company_name=require_str(data, 'company_name', required=False),
        stage=require_str(data, 'stage', required=False),
        is_smart_generated=False,
        created_by=current_principal().id,
    )
    session.add(r)
    session.commit()
    return _reminder_json(r), 201


@reminders_bp.patch('/<int:reminder_id>/complete')
@login_required
def complete_reminder(reminder_id: int):
    r = _own_reminder(reminder_id)
    if not r.is_completed:
        r.is_completed = True
        r.completed_at = utcnow()
        get_db().commit()
    return _reminder_json(r)


@reminders_bp.delete('/<int:reminder_id>')
@login_required
def delete_reminder(reminder_id: int):
    session = get_db()
    r = _own_reminder(reminder_id)
    session.delete(r)
    session.commit()
    return {'message': 'Reminder deleted successfully'}
