from salonops import get_db
from salonops.models.audit import AuditLog
from tests.test_utils_seed import ensure_user, ensure_client, auth_headers, login, grant


def _admin_headers(app):
    return auth_headers(app, ensure_user('iam_admin@example.com', role='admin'))


def test_user_management_is_admin_only(client, app_instance):
    staff = ensure_user('iam_staff@example.com', role='management', grants=[grant('staff', [], 'full')])
    headers = auth_headers(app_instance, staff)
    resp = client.get('/iam/users', headers=headers)
    assert resp.status_code == 403
    assert resp.get_json()['message'] == 'Insufficient permissions'
    assert client.get('/iam/config/permissions', headers=headers).status_code == 403


def test_list_users_filters_and_paginates(client, app_instance):
    headers = _admin_headers(app_instance)
    ensure_user('iam_hr1@example.com', role='hr')
    ensure_user('iam_hr2@example.com', role='hr')
    resp = client.get('/iam/users?role=hr&limit=1', headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['pagination']['limit'] == 1
    assert body['pagination']['total'] >= 2
    assert len(body['data']) == 1
    assert body['data'][0]['role'] == 'hr'


def test_update_permissions_replaces_grants_and_audits(client, app_instance):
    headers = _admin_headers(app_instance)
    target = ensure_user('iam_target@example.com', grants=[grant('leads', ['read'])])
    resp = client.put(f'/iam/users/{target.id}/permissions', json={
        'role': 'director',
        'permissions': [grant('reports', [], 'full'), grant('clients', ['read', 'approve'], 'view')],
    }, headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['role'] == 'director'
    assert sorted(p['module'] for p in body['permissions']) == ['clients', 'reports']
    target_headers = login(client, 'iam_target@example.com')
    me = client.get('/iam/auth/me', headers=target_headers).get_json()
    assert me['accessible_modules'] == ['clients', 'reports']
    log = get_db().query(AuditLog).filter_by(action='USER.PERMISSIONS.SET', entity_id=str(target.id)).first()
    assert log is not None
    assert log.meta['modules'] == ['reports', 'clients']


def test_update_permissions_rejects_bad_values_without_changes(client, app_instance):
    headers = _admin_headers(app_instance)
    target = ensure_user('iam_guarded@example.com', grants=[grant('leads', ['read'])])
    dup = client.put(f'/iam/users/{target.id}/permissions', json={
        'role': 'hr',
        'permissions': [grant('tasks', ['read']), grant('tasks', ['update'], 'edit')],
    }, headers=headers)
    assert dup.status_code == 400
    bad_level = client.put(f'/iam/users/{target.id}/permissions', json={
        'permissions': [grant('tasks', ['read'], 'owner')],
    }, headers=headers)
    assert bad_level.status_code == 400
    bad_role = client.put(f'/iam/users/{target.id}/permissions', json={'role': 'janitor'}, headers=headers)
    assert bad_role.status_code == 400
    current = client.get(f'/iam/users/{target.id}', headers=headers).get_json()
    assert current['role'] == 'sales'
    assert [p['module'] for p in current['permissions']] == ['leads']


def test_create_client_account(client, app_instance):
    headers = _admin_headers(app_instance)
    salon = ensure_client('Account Salon')
    resp = client.post('/iam/users/client-account', json={
        'client_id': salon.id, 'email': 'owner@accountsalon.example', 'password': 'secret1',
    }, headers=headers)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['user_type'] == 'client' and body['client_id'] == salon.id
    assert {p['module']: p['level'] for p in body['permissions']} == {'dashboard': 'view', 'clients': 'view', 'documents': 'edit'}
    dup = client.post('/iam/users/client-account', json={
        'client_id': salon.id, 'email': 'owner@accountsalon.example', 'password': 'secret1',
    }, headers=headers)
    assert dup.status_code == 400
    missing = client.post('/iam/users/client-account', json={
        'client_id': 987654, 'email': 'ghost@example.com', 'password': 'secret1',
    }, headers=headers)
    assert missing.status_code == 404
    portal_headers = login(client, 'owner@accountsalon.example', 'secret1')
    me = client.get('/iam/auth/me', headers=portal_headers).get_json()
    assert me['accessible_modules'] == ['dashboard', 'clients', 'documents']


def test_create_staff_user(client, app_instance):
    headers = _admin_headers(app_instance)
    resp = client.post('/iam/users', json={
        'name': 'New Hire', 'email': 'NewHire@example.com', 'password': 'secret1', 'role': 'hr',
        'department': 'hr', 'permissions': [grant('staff', [], 'full')],
    }, headers=headers)
    assert resp.status_code == 201
    assert resp.get_json()['email'] == 'newhire@example.com'
    short = client.post('/iam/users', json={'name': 'x', 'email': 'short@example.com', 'password': '123'}, headers=headers)
    assert short.status_code == 400


def test_permission_config_lists_labels(client, app_instance):
    body = client.get('/iam/config/permissions', headers=_admin_headers(app_instance)).get_json()
    assert len(body['modules']) == 11
    assert {'value': 'full', 'label': 'Full Access', 'description': 'Complete access to module'} in body['levels']
    assert [a['value'] for a in body['actions']] == ['create', 'read', 'update', 'delete', 'approve', 'assign', 'share']


def test_create_user_rejects_non_string_fields(client, app_instance):
    headers = _admin_headers(app_instance)
    numeric_pw = client.post('/iam/users', json={'name': 'Num', 'email': 'num@example.com', 'password': 123456}, headers=headers)
    assert numeric_pw.status_code == 400
    assert numeric_pw.get_json()['message'] == 'password must be a string'
    list_email = client.post('/iam/users', json={'name': 'Num', 'email': ['a@b.c'], 'password': 'secret1'}, headers=headers)
    assert list_email.status_code == 400
    assert list_email.get_json()['message'] == 'email must be a string'
    salon = ensure_client('Typed Salon')
    bad_account = client.post('/iam/users/client-account', json={
        'client_id': salon.id, 'email': 42, 'password': 'secret1',
    }, headers=headers)
    assert bad_account.status_code == 400
    bad_client_ref = client.post('/iam/users/client-account', json={
        'client_id': 'first', 'email': 'typed@example.com', 'password': 'secret1',
    }, headers=headers)
    assert bad_client_ref.status_code == 400
    assert bad_client_ref.get_json()['message'] == 'client_id must be an integer'
    login_resp = client.post('/iam/auth/login', json={'email': 7, 'password': 'pw'})
    assert login_resp.status_code == 400
