from tests.test_utils_seed import ensure_user, auth_headers, ONBOARDING_GRANTS


def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    # Flask default 404 should be wrapped by error handler
    assert resp.status_code == 404
    body = resp.get_json()
    assert body['error']['status'] == 404
    assert body['message'] == body['error']['detail']


def test_health(client):
    assert client.get('/healthz').get_json() == {'status': 'ok'}


def test_invalid_token_is_401(client):
    resp = client.get('/onboarding', headers={'Authorization': 'Bearer not-a-token'})
    assert resp.status_code == 401
    assert resp.get_json()['error']['title'] == 'Unauthorized'


def test_validation_error_shape(client, app_instance):
    headers = auth_headers(app_instance, ensure_user('err_validation@example.com', grants=ONBOARDING_GRANTS))
    resp = client.post('/onboarding', json={'priority': 'whenever'}, headers=headers)
    assert resp.status_code == 400
    body = resp.get_json()
    assert body['error']['title'] == 'Bad Request'
    assert body['message'].startswith('priority must be one of')


def test_internal_error_shape(client, app_instance, monkeypatch):
    headers = auth_headers(app_instance, ensure_user('err_boom@example.com', grants=ONBOARDING_GRANTS))
    import salonops.routes.onboarding as onboarding_mod

    def boom(*a, **k):
        raise RuntimeError('explode')
    monkeypatch.setattr(onboarding_mod.progress_engine, 'urgency_level', boom)
    created = client.post('/onboarding', json={}, headers=headers)
    assert created.status_code == 500
    body = created.get_json()
    assert body['error']['status'] == 500
    assert body['error']['title'] == 'Internal Server Error'
    assert body['message'] == 'Unexpected error'
