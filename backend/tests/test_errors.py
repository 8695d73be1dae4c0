from mint.errors import ConflictError, MintError, NotFoundError, PermissionDeniedError, UnauthorizedError


def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    # Flask default 404 should be wrapped by error handler
    assert resp.status_code == 404
    body = resp.get_json()
    assert 'error' in body
    assert body['error']['status'] == 404
    assert 'detail' in body['error']


def test_healthz(client):
    resp = client.get('/healthz')
    assert resp.status_code == 200
    assert resp.get_json() == {'status': 'ok'}


def test_internal_error_shape(client, monkeypatch):
    from tests.test_utils_seed import DEFAULT_PASSWORD, make_user
    core = client.application.extensions['mint']
    make_user(core, 'err@example.com')

    def boom(*a, **k):
        raise RuntimeError('explode')

    monkeypatch.setattr(core.auth, 'login', boom)
    resp = client.post('/auth/login', json={'email': 'err@example.com', 'password': DEFAULT_PASSWORD})
    assert resp.status_code == 500
    body = resp.get_json()
    assert body['error']['status'] == 500
    assert body['error']['title'] == 'Internal Server Error'
    assert 'explode' not in body['error']['detail']


def test_core_errors_carry_status_and_title():
    assert ConflictError('dup').status == 409
    assert UnauthorizedError().detail == 'Unauthorized'
    assert NotFoundError('x').title == 'Not Found'
    denied = PermissionDeniedError('invoice', 'delete', user_id=7)
    assert denied.status == 403
    assert str(denied) == 'Missing permission invoice:delete'
    assert isinstance(denied, MintError)
