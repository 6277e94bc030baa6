from conftest import login


def test_index_redirects_anonymous_users_to_login(client):
    response = client.get('/')
    assert response.status_code == 302
    assert '/auth/login' in response.headers['Location']


def test_login_stores_user_and_token(client, backend):
    response = login(client, backend, 'attorney', user_id='att1')
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/')

    with client.session_transaction() as sess:
        assert sess['auth_user']['id'] == 'att1'
        assert sess['auth_user']['role'] == 'attorney'
        assert sess['api_token'] == 'token-att1'

    # The login call itself never carries a bearer token
    assert 'Authorization' not in backend.calls[0]['headers']
    assert backend.calls[0]['json'] == {'email': 'attorney@example.com', 'password': 'secret'}

    page = client.get('/')
    assert b'Welcome, Test Attorney' in page.data


def test_login_failure_flashes_backend_message(client, backend):
    backend.add('POST', '/api/users/login', {'message': 'Invalid email or password'}, status=401)
    response = client.post('/auth/login', data={'email': 'x@example.com', 'password': 'nope'})
    assert response.status_code == 200
    assert b'Invalid email or password' in response.data
    with client.session_transaction() as sess:
        assert 'auth_user' not in sess


def test_login_redirects_to_safe_next(client, backend):
    backend.add('POST', '/api/users/login', {'data': {'_id': 'u1', 'role': 'admin', 'token': 't'}})
    response = client.post('/auth/login?next=/settings/security',
                           data={'email': 'admin@example.com', 'password': 'secret'})
    assert response.headers['Location'].endswith('/settings/security')

    client.get('/auth/logout')
    response = client.post('/auth/login?next=//evil.example.com',
                           data={'email': 'admin@example.com', 'password': 'secret'})
    assert 'evil.example.com' not in response.headers['Location']


def test_api_calls_use_session_token(admin_client, backend):
    backend.add('GET', '/api/v1/settings/u1/profile', {'data': {'firstName': 'Test'}})
    admin_client.get('/settings/profile')
    call = [c for c in backend.calls if c['path'] == '/api/v1/settings/u1/profile'][0]
    assert call['headers']['Authorization'] == 'Bearer token-u1'


def test_logout_clears_session(admin_client):
    response = admin_client.get('/auth/logout', follow_redirects=True)
    assert b'You have been logged out.' in response.data
    with admin_client.session_transaction() as sess:
        assert 'auth_user' not in sess
        assert 'api_token' not in sess


def test_poll_without_login_returns_json_401(client):
    response = client.get('/settings/profile/poll')
    assert response.status_code == 401
    assert response.get_json()['error'] == 'Authentication required'
