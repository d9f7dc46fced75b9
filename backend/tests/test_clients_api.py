from tests.test_utils_seed import ensure_user, auth_headers, grant

CLIENT_WRITER = [grant('clients', ['create', 'read', 'update'], 'edit')]


def _payload(name, **extra):
    body = {
        'business_name': name,
        'business_type': 'barbershop',
        'contact_name': 'Sam',
        'contact_phone': '555-0199',
        'contact_email': 'Sam@Example.com',
    }
    body.update(extra)
    return body


def test_create_and_get_client(client, app_instance):
    user = ensure_user('clients_writer@example.com', grants=CLIENT_WRITER)
    headers = auth_headers(app_instance, user)
    resp = client.post('/clients', json=_payload('Sharp Fades'), headers=headers)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['contact_email'] == 'sam@example.com'
    assert body['onboarding_status'] == 'pending'
    assert body['assigned_sales_agent_id'] == user.id
    got = client.get(f"/clients/{body['id']}", headers=headers)
    assert got.status_code == 200
    assert got.get_json()['business_name'] == 'Sharp Fades'


def test_create_client_validates_enums_and_required(client, app_instance):
    headers = auth_headers(app_instance, ensure_user('clients_writer@example.com', grants=CLIENT_WRITER))
    bad_type = client.post('/clients', json=_payload('Bad Type', business_type='gym'), headers=headers)
    assert bad_type.status_code == 400
    assert 'business_type' in bad_type.get_json()['message']
    missing = client.post('/clients', json={'business_name': 'Half'}, headers=headers)
    assert missing.status_code == 400


def test_update_and_search_clients(client, app_instance):
    headers = auth_headers(app_instance, ensure_user('clients_writer@example.com', grants=CLIENT_WRITER))
    created = client.post('/clients', json=_payload('Velvet Rooms'), headers=headers).get_json()
    upd = client.put(f"/clients/{created['id']}", json={'onboarding_status': 'in-progress'}, headers=headers)
    assert upd.status_code == 200
    assert upd.get_json()['onboarding_status'] == 'in-progress'
    found = client.get('/clients?search=velvet', headers=headers).get_json()
    assert [c['id'] for c in found['data']] == [created['id']]
    assert client.get('/clients/424242', headers=headers).status_code == 404


def test_client_fields_must_be_strings_and_agents_must_exist(client, app_instance):
    headers = auth_headers(app_instance, ensure_user('clients_writer@example.com', grants=CLIENT_WRITER))
    numeric_email = client.post('/clients', json=_payload('Typed Cuts', contact_email=12), headers=headers)
    assert numeric_email.status_code == 400
    assert numeric_email.get_json()['message'] == 'contact_email must be a string'
    ghost_agent = client.post('/clients', json=_payload('Ghost Agent', assigned_sales_agent_id=987654), headers=headers)
    assert ghost_agent.status_code == 404
    assert ghost_agent.get_json()['message'] == 'User not found'
    created = client.post('/clients', json=_payload('Typed Rooms'), headers=headers).get_json()
    upd = client.put(f"/clients/{created['id']}", json={'contact_email': {'x': 1}}, headers=headers)
    assert upd.status_code == 400
    assert client.get(f"/clients/{created['id']}", headers=headers).get_json()['contact_email'] == 'sam@example.com'
