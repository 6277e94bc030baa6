import pytest
import requests

from efile_legal.services.api_client import ApiClient, ApiError, expand_path

from conftest import BASE_URL


def test_bearer_token_is_sent_except_for_login_and_register(backend):
    backend.add('GET', '/api/v1/immigration/categories', {'data': []})
    backend.add('POST', '/api/users/login', {'data': {'_id': 'u1'}})
    backend.add('POST', '/api/users/register', {'data': {'_id': 'u1'}})
    client = ApiClient(BASE_URL, token='abc')

    client.get('/api/v1/immigration/categories')
    client.post('/api/users/login', json={})
    client.post('/api/users/register', json={})

    assert backend.calls[0]['headers']['Authorization'] == 'Bearer abc'
    assert 'Authorization' not in backend.calls[1]['headers']
    assert 'Authorization' not in backend.calls[2]['headers']


def test_base_url_trailing_slash_is_ignored(backend):
    backend.add('GET', '/api/v1/roles', {'data': []})
    ApiClient(BASE_URL + '/').get('/api/v1/roles')
    assert backend.paths() == ['/api/v1/roles']


def test_call_wraps_data_and_pagination(backend):
    backend.add('GET', '/api/v1/companies/user/u1', {
        'companies': [{'_id': 'c1'}],
        'pagination': {'page': 1, 'total': 1},
    })
    response = ApiClient(BASE_URL).get('/api/v1/companies/user/u1', data_key='companies')
    assert response.data == [{'_id': 'c1'}]
    assert response.pagination == {'page': 1, 'total': 1}
    assert response.status == 200
    assert not response.skipped


def test_token_in_response_is_remembered(backend):
    backend.add('POST', '/api/users/login', {'data': {'_id': 'u1', 'token': 'fresh'}})
    client = ApiClient(BASE_URL)
    client.post('/api/users/login', json={})
    assert client.token == 'fresh'


def test_error_status_raises_with_backend_message(backend):
    backend.add('PUT', '/api/v1/settings/u1/profile', {'message': 'Email already in use'}, status=400)
    with pytest.raises(ApiError) as excinfo:
        ApiClient(BASE_URL).put('/api/v1/settings/u1/profile', json={})
    assert excinfo.value.status == 400
    assert excinfo.value.message == 'Email already in use'


def test_error_without_json_body_uses_status_and_reason(backend):
    backend.add('GET', '/api/v1/roles', None, status=503, reason='Service Unavailable')
    with pytest.raises(ApiError) as excinfo:
        ApiClient(BASE_URL).get('/api/v1/roles')
    assert excinfo.value.message == 'Request failed with status 503: Service Unavailable'


def test_unauthorized_is_flagged(backend):
    backend.add('GET', '/api/v1/roles', {'message': 'Token expired'}, status=401)
    with pytest.raises(ApiError) as excinfo:
        ApiClient(BASE_URL, token='old').get('/api/v1/roles')
    assert excinfo.value.is_unauthorized


def test_network_failure_becomes_api_error(backend):
    backend.fail('GET', '/api/v1/roles', requests.Timeout('timed out'))
    with pytest.raises(ApiError) as excinfo:
        ApiClient(BASE_URL).get('/api/v1/roles')
    assert excinfo.value.status is None


def test_raw_request_returns_bytes(backend):
    backend.add('GET', '/api/v1/settings/u1/database/export', None, content=b'CREATE TABLE cases();')
    content, resp = ApiClient(BASE_URL).request('GET', '/api/v1/settings/u1/database/export', raw=True)
    assert content == b'CREATE TABLE cases();'
    assert resp.status_code == 200


def test_expand_path():
    assert expand_path('/api/v1/settings/:userId/reports/:reportId', userId='u1', reportId='r9') == \
        '/api/v1/settings/u1/reports/r9'
