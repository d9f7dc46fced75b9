from __future__ import annotations
from flask import Blueprint, request
from sqlalchemy import func, and_
from salonops.decorators.auth import require_permission
from salonops.utils.dates import parse_datetime
from salonops.utils.listing import build_list_payload, request_pagination
from salonops import get_db
from salonops.models.client import Client
from salonops.models.onboarding import Onboarding
from salonops.models.reminder import Reminder

rpt_bp = Blueprint('reports', __name__)


def _gather_metrics(include_progress: bool = False, start_date=None, end_date=None):
    session = get_db()
    metrics = []

    def _window(q, model):
        dt_filters = []
        if start_date:
            dt_filters.append(model.updated_at >= start_date)
        if end_date:
            dt_filters.append(model.updated_at <= end_date)
        return q.filter(and_(*dt_filters)) if dt_filters else q

    # Helper to run grouped count over a status-like column
    def status_counts(model, status_col, domain_name, avg_field=None):
        q = _window(session.query(status_col, func.count(model.id)), model).group_by(status_col)
        counts = {str(status): int(count) for status, count in q.all()}
        averages = {}
        if include_progress and avg_field is not None:
            q2 = _window(session.query(status_col, func.avg(avg_field)), model).group_by(status_col)
            averages = {str(status): round(float(avg or 0), 1) for status, avg in q2.all()}
        for status, count in counts.items():
            row = {"domain": domain_name, "status": status, "count": count}
            if include_progress and avg_field is not None:
                row["avg_progress"] = averages.get(status, 0.0)
            metrics.append(row)

    status_counts(Onboarding, Onboarding.status, 'Onboarding', Onboarding.progress)
    status_counts(Client, Client.onboarding_status, 'Client')
    # reminders have no status column; completion is the only axis
    reminder_state = func.coalesce(Reminder.is_completed, False)
    q = _window(session.query(reminder_state, func.count(Reminder.id)), Reminder).group_by(reminder_state)
    for done, count in q.all():
        metrics.append({"domain": 'Reminder', "status": 'completed' if done else 'pending', "count": int(count)})
    # Deterministic ordering
    metrics.sort(key=lambda m: (m['domain'], m.get('status') or ''))
    return metrics


@rpt_bp.get('/metrics')
@require_permission('reports', 'read')
def list_metrics():
    include_progress = request.args.get('include_progress') == 'true'
    start_date = parse_datetime(request.args.get('start_date'))
    end_date = parse_datetime(request.args.get('end_date'))
    metrics = _gather_metrics(include_progress, start_date, end_date)
    limit, offset = request_pagination(default_limit=50)
    sliced = metrics[offset:offset + limit]
    return build_list_payload(sliced, len(metrics), limit, offset)
