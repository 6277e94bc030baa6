import pytest


COMPANIES = {'companies': [
    {'_id': 'c1', 'name': 'Rivera Immigration Law', 'email': 'info@rivera.law', 'type': 'Law Firm',
     'status': 'Active', 'address': {'city': 'Austin', 'state': 'TX'}, 'userCount': 4},
    {'_id': 'c2', 'name': 'Chen & Park', 'email': 'hello@chenpark.com', 'type': 'Other',
     'status': 'Inactive', 'address': {'city': 'Seattle', 'state': 'WA'}, 'userCount': 2},
]}

PLANS = {'data': [
    {'_id': 'p1', 'name': 'pro', 'displayName': 'Pro', 'price': {'monthly': 99, 'yearly': 990}},
]}


@pytest.fixture
def company_backend(backend):
    backend.add('GET', '/api/v1/companies/user/u1', COMPANIES)
    backend.add('GET', '/api/v1/subscriptions/company/c1', {'data': {
        'companyId': 'c1', 'planId': {'_id': 'p1', 'displayName': 'Pro'}, 'status': 'active',
    }})
    backend.add('GET', '/api/v1/subscriptions/company/c2', {'message': 'No subscription'}, status=404)
    backend.add('GET', '/api/v1/subscriptions/plans', PLANS)
    return backend


def test_companies_require_admin(paralegal_client, company_backend):
    response = paralegal_client.get('/companies/')
    assert response.status_code == 403
    assert '/api/v1/companies/user/para1' not in company_backend.paths()


def test_company_list_with_stats(admin_client, company_backend):
    response = admin_client.get('/companies/')
    assert response.status_code == 200
    assert b'Rivera Immigration Law' in response.data
    assert b'Chen &amp; Park' in response.data
    assert b'Pro (active)' in response.data
    assert b'Active subscriptions' in response.data


def test_company_list_search(admin_client, company_backend):
    response = admin_client.get('/companies/?q=seattle')
    assert b'Chen &amp; Park' in response.data
    assert b'Rivera Immigration Law' not in response.data

    response = admin_client.get('/companies/?q=nowhere')
    assert b'No companies match your search.' in response.data


def test_company_list_error(admin_client, backend):
    backend.add('GET', '/api/v1/companies/user/u1', {'message': 'boom'}, status=500)
    response = admin_client.get('/companies/')
    assert response.status_code == 200
    assert b'Failed to load companies: boom' in response.data


def test_company_detail(admin_client, company_backend):
    company_backend.add('GET', '/api/v1/companies/c1', {'data': COMPANIES['companies'][0]})
    company_backend.add('GET', '/api/v1/companies/c1/users', {'data': {
        'attorneys': [{'_id': 'a1', 'firstName': 'Maria', 'lastName': 'Rivera', 'role': 'attorney'}],
        'paralegals': [{'_id': 'p1', 'firstName': 'Sam', 'lastName': 'Ortiz', 'role': 'paralegal'}],
    }})
    response = admin_client.get('/companies/c1')
    assert response.status_code == 200
    assert b'Maria Rivera' in response.data
    assert b'Sam Ortiz' in response.data
    assert b'Cancel subscription' in response.data
    assert b'Pro ($99.00/mo, $990.00/yr)' in response.data


def test_missing_company_redirects(admin_client, company_backend):
    company_backend.add('GET', '/api/v1/companies/c404', {'message': 'Company not found'}, status=404)
    response = admin_client.get('/companies/c404', follow_redirects=True)
    assert b'Company not found.' in response.data


def test_subscribe(admin_client, company_backend):
    company_backend.add('POST', '/api/v1/subscriptions/subscribe', {'data': {
        'companyId': 'c2', 'planId': 'p1', 'status': 'active',
    }})
    response = admin_client.post('/companies/c2/subscribe', data={
        'plan_id': 'p1', 'billing_cycle': 'yearly', 'payment_type': 'card', 'payment_token': 'tok_123',
    })
    assert response.headers['Location'].endswith('/companies/c2')
    body = [c for c in company_backend.calls if c['path'] == '/api/v1/subscriptions/subscribe'][0]['json']
    assert body == {
        'companyId': 'c2',
        'planId': 'p1',
        'billingCycle': 'yearly',
        'paymentMethod': {'type': 'card', 'token': 'tok_123'},
    }


def test_subscribe_rejects_unknown_plan(admin_client, company_backend):
    admin_client.post('/companies/c2/subscribe', data={
        'plan_id': 'nope', 'billing_cycle': 'monthly', 'payment_type': 'card', 'payment_token': 'tok',
    })
    assert '/api/v1/subscriptions/subscribe' not in company_backend.paths()


def test_cancel_subscription(admin_client, company_backend):
    company_backend.add('POST', '/api/v1/subscriptions/cancel', {'data': {}})
    company_backend.add('GET', '/api/v1/companies/c1', {'data': COMPANIES['companies'][0]})
    company_backend.add('GET', '/api/v1/companies/c1/users', {'data': []})
    response = admin_client.post('/companies/c1/cancel', data={'confirm': 'Delete'}, follow_redirects=True)
    assert b'Subscription cancelled.' in response.data
