from datetime import timedelta
from salonops import get_db
from salonops.models.onboarding import Onboarding
from salonops.models.reminder import Reminder
from salonops.utils.dates import utcnow
from tests.test_utils_seed import ensure_user, auth_headers, grant, ONBOARDING_GRANTS


def test_reports_metrics_grouped_counts(client, app_instance):
    session = get_db()
    session.query(Reminder).delete()
    session.query(Onboarding).delete()
    session.commit()
    writer = auth_headers(app_instance, ensure_user('rpt_writer@example.com', grants=ONBOARDING_GRANTS))
    client.post('/onboarding', json={}, headers=writer)
    client.post('/onboarding', json={'business_info': {'company_name': 'A'}}, headers=writer)
    client.post('/onboarding', json={'business_info': {'company_name': 'B', 'phone_number': '1'}}, headers=writer)
    client.post('/reminders', json={'title': 't', 'due_date': (utcnow() + timedelta(days=1)).isoformat()}, headers=writer)

    reader = auth_headers(app_instance, ensure_user('rpt_reader@example.com', grants=[grant('reports', ['read'])]))
    resp = client.get('/reports/metrics?include_progress=true', headers=reader)
    assert resp.status_code == 200
    body = resp.get_json()
    rows = {(r['domain'], r['status']): r for r in body['data']}
    assert rows[('Onboarding', 'pending')]['count'] == 1
    assert rows[('Onboarding', 'in-progress')]['count'] == 2
    assert rows[('Onboarding', 'in-progress')]['avg_progress'] == 11.5
    assert rows[('Reminder', 'pending')]['count'] == 1
    assert body['pagination']['total'] == len(body['data'])
    # deterministic ordering by domain then status
    keys = [(r['domain'], r['status']) for r in body['data']]
    assert keys == sorted(keys)


def test_reports_metrics_paginates_rows(client, app_instance):
    reader = auth_headers(app_instance, ensure_user('rpt_pager@example.com', grants=[grant('reports', ['read'])]))
    body = client.get('/reports/metrics?limit=1&offset=0', headers=reader).get_json()
    assert len(body['data']) <= 1
    assert body['pagination']['limit'] == 1


def test_reports_require_read(client, app_instance):
    denied = auth_headers(app_instance, ensure_user('rpt_denied@example.com', grants=[grant('reports', [], 'edit')]))
    resp = client.get('/reports/metrics', headers=denied)
    assert resp.status_code == 403
    assert resp.get_json()['message'] == 'Insufficient permissions for read on reports'
