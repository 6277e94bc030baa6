import os

# config.Config refuses to load without a SECRET_KEY outside development
os.environ.setdefault('SECRET_KEY', 'test-secret-key')

import pytest
import requests

from config import TestConfig
from efile_legal import create_app
from efile_legal.utils.simple_cache import settings_cache

BASE_URL = TestConfig.API_BASE_URL


class DummyResponse:
    def __init__(self, payload=None, status_code=200, content=b'', reason='OK'):
        self._payload = payload
        self.status_code = status_code
        self.content = content
        self.reason = reason

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}")


class FakeBackend:
    """Stands in for ``requests.request``; routes are keyed by (METHOD, path)."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method, path, payload=None, status=200, content=b'', reason='OK'):
        self.routes[(method.upper(), path)] = DummyResponse(payload, status, content, reason)

    def fail(self, method, path, exc=None):
        self.routes[(method.upper(), path)] = exc or requests.ConnectionError('connection refused')

    def __call__(self, method, url, headers=None, json=None, params=None, files=None, data=None, timeout=None):
        path = url[len(BASE_URL):] if url.startswith(BASE_URL) else url
        self.calls.append({
            'method': method.upper(),
            'path': path,
            'headers': headers or {},
            'json': json,
            'files': files,
            'data': data,
        })
        route = self.routes.get((method.upper(), path))
        if route is None:
            return DummyResponse({'message': f'No route for {method} {path}'}, 404, reason='Not Found')
        if isinstance(route, Exception):
            raise route
        return route

    def paths(self, method=None):
        return [c['path'] for c in self.calls if method is None or c['method'] == method.upper()]


@pytest.fixture
def backend(monkeypatch):
    fake = FakeBackend()
    monkeypatch.setattr(requests, 'request', fake)
    return fake


@pytest.fixture
def app(backend):
    settings_cache.clear()
    app = create_app(TestConfig)
    yield app
    settings_cache.clear()


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, backend, role='admin', user_id='u1'):
    backend.add('POST', '/api/users/login', {
        'data': {
            '_id': user_id,
            'email': f'{role}@example.com',
            'firstName': 'Test',
            'lastName': role.title(),
            'role': role,
            'token': f'token-{user_id}',
        }
    })
    return client.post('/auth/login', data={'email': f'{role}@example.com', 'password': 'secret'})


@pytest.fixture
def admin_client(client, backend):
    login(client, backend, 'admin')
    return client


@pytest.fixture
def attorney_client(client, backend):
    login(client, backend, 'attorney', user_id='att1')
    return client


@pytest.fixture
def paralegal_client(client, backend):
    login(client, backend, 'paralegal', user_id='para1')
    return client
