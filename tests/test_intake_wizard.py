"""End-to-end tests for the intake wizard blueprint."""
import io

import pytest

from efile_legal.domain.wizard import FormWizard


def seed_wizard(client, step, **data):
    with client.session_transaction() as sess:
        sess['wizard'] = FormWizard(data, current_step=step).to_session()


def wizard_state(client):
    with client.session_transaction() as sess:
        return FormWizard.from_session(sess.get('wizard'))


COMPLETE_DATA = dict(
    selected_forms=['f1', 'f2'],
    selected_categories={'category_id': 'family', 'subcategory_id': 'immediate'},
    client_info={'client_id': 'c1', 'client_name': 'Ana Lopez'},
    foia_info={'foia_required': True, 'foia_status': 'pending'},
    case_info={'case_number': 'CASE-1', 'priority_date': '2024-01-01', 'assigned_staff': 'J. Doe',
               'case_notes': 'Spousal petition'},
)


@pytest.fixture
def forms_backend(backend):
    backend.add('GET', '/api/v1/immigration/categories', {'data': [{'_id': 'k1', 'name': 'Family'}]})
    backend.add('GET', '/api/v1/immigration/categories/k1/forms', {'data': [
        {'_id': 'f1', 'name': 'Petition for Alien Relative', 'formNumber': 'I-130'},
    ]})
    return backend


def test_wizard_requires_login(client):
    response = client.get('/wizard/')
    assert response.status_code == 302
    assert '/auth/login' in response.headers['Location']


def test_form_selection_lists_forms(admin_client, forms_backend):
    response = admin_client.get('/wizard/start', follow_redirects=True)
    assert response.status_code == 200
    assert b'I-130' in response.data
    assert b'Family' in response.data
    assert b'Step 1 of 8' in response.data


def test_form_selection_error_messages(admin_client, backend):
    response = admin_client.get('/wizard/start', follow_redirects=True)
    assert b'Failed to load forms. Please try again.' in response.data

    backend.add('GET', '/api/v1/immigration/categories', {'data': []})
    response = admin_client.get('/wizard/')
    assert b'No forms available. Please try again later.' in response.data


def test_toggle_and_advance(admin_client, forms_backend):
    admin_client.get('/wizard/start')
    admin_client.post('/wizard/navigate', data={'next': 'Next'})
    assert wizard_state(admin_client).current_step == 0

    admin_client.post('/wizard/forms/toggle', data={'form_id': 'f1'})
    assert wizard_state(admin_client).data['selected_forms'] == ['f1']

    admin_client.post('/wizard/navigate', data={'next': 'Next'})
    assert wizard_state(admin_client).current_step == 1

    admin_client.post('/wizard/navigate', data={'back': 'Back'})
    assert wizard_state(admin_client).current_step == 0


def test_jump_forward_is_blocked(admin_client, forms_backend):
    admin_client.get('/wizard/start')
    response = admin_client.get('/wizard/step/5', follow_redirects=True)
    assert b'Please complete' in response.data
    assert wizard_state(admin_client).current_step == 0


def test_jump_back_is_always_allowed(admin_client, backend):
    seed_wizard(admin_client, 4, **COMPLETE_DATA)
    admin_client.get('/wizard/step/2')
    assert wizard_state(admin_client).current_step == 1


def test_category_choice_resets_subcategory(admin_client):
    seed_wizard(admin_client, 1, selected_forms=['f1'])
    admin_client.post('/wizard/categories/select', data={'category_id': 'family'})
    admin_client.post('/wizard/categories/select', data={'subcategory_id': 'immediate'})
    assert wizard_state(admin_client).data['selected_categories'] == {
        'category_id': 'family', 'subcategory_id': 'immediate',
    }
    admin_client.post('/wizard/categories/select', data={'category_id': 'employment'})
    assert wizard_state(admin_client).data['selected_categories'] == {
        'category_id': 'employment', 'subcategory_id': '',
    }


def test_actions_for_other_steps_are_rejected(admin_client):
    seed_wizard(admin_client, 0)
    admin_client.post('/wizard/categories/select', data={'category_id': 'family'})
    assert wizard_state(admin_client).data['selected_categories']['category_id'] == ''


def test_select_existing_client(admin_client, backend):
    backend.add('GET', '/api/uscisclients/getAllClientsList', {'data': [
        {'_id': 'c7', 'firstName': 'Li', 'lastName': 'Wei', 'email': 'li@example.com'},
    ]})
    seed_wizard(admin_client, 2, selected_forms=['f1'],
                selected_categories={'category_id': 'family', 'subcategory_id': 'immediate'})
    page = admin_client.get('/wizard/')
    assert b'Li Wei' in page.data

    admin_client.post('/wizard/client/select', data={'client_id': 'c7', 'client_name': 'Li Wei'})
    assert wizard_state(admin_client).data['client_info'] == {'client_id': 'c7', 'client_name': 'Li Wei'}


CLIENT_FORM = {
    'first_name': 'Ana', 'last_name': 'Lopez', 'email': 'ana@example.com', 'phone': '555-0101',
    'date_of_birth': '1990-02-03', 'nationality': 'Mexican', 'street': '1 Main St', 'city': 'Austin',
    'state': 'TX', 'zip_code': '78701', 'country': 'US',
}


def test_create_client_sets_client_id(admin_client, backend):
    backend.add('POST', '/api/uscisclients/addClientContact', {'data': {'_id': 'new1'}})
    seed_wizard(admin_client, 2, selected_forms=['f1'],
                selected_categories={'category_id': 'family', 'subcategory_id': 'immediate'})
    admin_client.post('/wizard/client/create', data=CLIENT_FORM)
    assert wizard_state(admin_client).data['client_info'] == {'client_id': 'new1', 'client_name': 'Ana Lopez'}
    body = [c for c in backend.calls if c['path'] == '/api/uscisclients/addClientContact'][0]['json']
    assert body['address']['zipCode'] == '78701'


def test_create_client_failure_shows_message(admin_client, backend):
    backend.add('POST', '/api/uscisclients/addClientContact', {'message': 'boom'}, status=500)
    seed_wizard(admin_client, 2, selected_forms=['f1'],
                selected_categories={'category_id': 'family', 'subcategory_id': 'immediate'})
    response = admin_client.post('/wizard/client/create', data=CLIENT_FORM)
    assert b'Failed to create client. Please try again.' in response.data
    assert wizard_state(admin_client).data['client_info']['client_id'] == ''


def test_create_client_requires_every_field(admin_client, backend):
    seed_wizard(admin_client, 2)
    incomplete = dict(CLIENT_FORM, nationality='')
    response = admin_client.post('/wizard/client/create', data=incomplete)
    assert response.status_code == 200
    assert backend.paths('POST') == ['/api/users/login']


def test_foia_answer(admin_client, backend):
    backend.add('GET', '/api/v1/immigration/categories', {'data': [{'_id': 'k1', 'name': 'Family'}]})
    seed_wizard(admin_client, 3)
    admin_client.post('/wizard/foia', data={'foia_required': 'yes'})
    foia = wizard_state(admin_client).data['foia_info']
    assert foia == {'foia_required': True, 'foia_status': 'pending'}

    admin_client.post('/wizard/foia', data={'foia_required': 'yes', 'foia_status': 'submitted'})
    assert wizard_state(admin_client).data['foia_info']['foia_status'] == 'submitted'

    admin_client.post('/wizard/foia', data={'foia_required': 'no'})
    assert wizard_state(admin_client).data['foia_info']['foia_status'] == 'not_required'


def test_foia_details_report_partial_failures(admin_client, backend):
    backend.add('GET', '/api/v1/immigration/categories', {'data': [{'_id': 'k1', 'name': 'Family'}]})
    backend.add('GET', '/api/v1/immigration/categories/k1/requirements', {'data': [{'name': 'Marriage certificate'}]})
    seed_wizard(admin_client, 3, foia_info={'foia_required': True, 'foia_status': 'pending'})
    response = admin_client.get('/wizard/?foia_category=k1')
    assert b'Marriage certificate' in response.data
    assert b'Failed to fetch form types' in response.data


def test_generate_case_number(admin_client):
    seed_wizard(admin_client, 4)
    admin_client.post('/wizard/case', data={'generate': 'Generate'})
    assert wizard_state(admin_client).data['case_info']['case_number'].startswith('CASE-')


def test_save_case_details(admin_client):
    seed_wizard(admin_client, 4)
    response = admin_client.post('/wizard/case', data={
        'case_number': 'CASE-77', 'priority_date': '2024-03-01', 'assigned_staff': 'J. Doe',
        'case_notes': 'Spousal petition',
    }, follow_redirects=True)
    assert b'Case preview' in response.data
    assert wizard_state(admin_client).data['case_info'] == {
        'case_number': 'CASE-77', 'priority_date': '2024-03-01', 'assigned_staff': 'J. Doe',
        'case_notes': 'Spousal petition',
    }


def _add_file(client, name, body=b'%PDF-1.4'):
    return client.post('/wizard/documents/add', data={'files': (io.BytesIO(body), name)},
                       content_type='multipart/form-data', follow_redirects=True)


def test_add_documents_validates_type(admin_client):
    seed_wizard(admin_client, 5, **COMPLETE_DATA)
    response = _add_file(admin_client, 'malware.exe')
    assert b'File type not allowed' in response.data
    assert wizard_state(admin_client).data['documents'] == []

    _add_file(admin_client, 'passport.pdf')
    documents = wizard_state(admin_client).data['documents']
    assert [(d['name'], d['status']) for d in documents] == [('passport.pdf', 'pending')]


def test_upload_document_success_and_failure(admin_client, backend):
    seed_wizard(admin_client, 5, **COMPLETE_DATA)
    _add_file(admin_client, 'passport.pdf')
    _add_file(admin_client, 'photo.png', b'\x89PNG')
    first, second = wizard_state(admin_client).data['documents']

    backend.add('POST', '/api/v1/documents/upload', {'data': {'_id': 'remote1'}})
    admin_client.post(f"/wizard/documents/{first['id']}/upload")
    backend.add('POST', '/api/v1/documents/upload', {'message': 'too large'}, status=413)
    admin_client.post(f"/wizard/documents/{second['id']}/upload")

    documents = wizard_state(admin_client).data['documents']
    assert documents[0]['status'] == 'completed'
    assert documents[1]['status'] == 'error'
    assert documents[1]['error'] == 'Upload failed'


def test_upload_all_and_remove(admin_client, backend):
    backend.add('POST', '/api/v1/documents/upload', {'data': {'_id': 'remote'}})
    seed_wizard(admin_client, 5, **COMPLETE_DATA)
    _add_file(admin_client, 'a.pdf')
    _add_file(admin_client, 'b.pdf')
    admin_client.post('/wizard/documents/upload-all')
    documents = wizard_state(admin_client).data['documents']
    assert [d['status'] for d in documents] == ['completed', 'completed']
    assert len(backend.paths('POST')) == 1 + 2  # login plus two uploads

    admin_client.post(f"/wizard/documents/{documents[0]['id']}/remove")
    assert [d['name'] for d in wizard_state(admin_client).data['documents']] == ['b.pdf']


def test_processing_seeds_and_processes_forms(admin_client, backend):
    data = dict(COMPLETE_DATA, documents=[{'id': 'd1', 'name': 'a.pdf', 'status': 'completed'}])
    seed_wizard(admin_client, 6, **data)
    admin_client.get('/wizard/')
    forms = wizard_state(admin_client).data['processed_forms']
    assert [(f['id'], f['status']) for f in forms] == [('f1', 'pending'), ('f2', 'pending')]

    backend.add('POST', '/api/v1/immigration/forms/f1/process', {'data': {}})
    backend.add('POST', '/api/v1/immigration/forms/f2/process', {'message': 'boom'}, status=500)
    admin_client.post('/wizard/processing/process-all')
    forms = wizard_state(admin_client).data['processed_forms']
    assert [(f['status'], f['error']) for f in forms] == [('completed', None), ('error', 'Processing failed')]
    call = [c for c in backend.calls if c['path'] == '/api/v1/immigration/forms/f1/process'][0]
    assert call['json'] == {'caseNumber': 'CASE-1'}

    admin_client.post('/wizard/processing/f2/retry')
    assert wizard_state(admin_client).data['processed_forms'][1] == {
        'id': 'f2', 'name': 'f2', 'form_number': '', 'status': 'pending', 'error': None,
    }


def test_completion_summary_and_submit(admin_client, backend):
    data = dict(
        COMPLETE_DATA,
        documents=[{'id': 'd1', 'name': 'a.pdf', 'status': 'completed'}],
        processed_forms=[{'id': 'f1', 'name': 'I-130', 'status': 'pending'}],
    )
    seed_wizard(admin_client, 7, **data)
    page = admin_client.get('/wizard/')
    assert b'Family-Based Immigration' in page.data
    assert b'Immediate Relatives' in page.data
    assert b'In Progress' in page.data
    assert b'Go to Dashboard' in page.data

    backend.add('POST', '/api/uscisclients/addClientCases', {'data': {'_id': 'case1'}})
    response = admin_client.post('/wizard/complete/submit', follow_redirects=True)
    assert b'Case CASE-1 submitted.' in response.data
    with admin_client.session_transaction() as sess:
        assert 'wizard' not in sess
    body = [c for c in backend.calls if c['path'] == '/api/uscisclients/addClientCases'][0]['json']
    assert body['clientId'] == 'c1'
    assert body['category'] == 'Family-Based Immigration'


def test_submit_failure_keeps_wizard(admin_client, backend):
    seed_wizard(admin_client, 7, **COMPLETE_DATA)
    backend.add('POST', '/api/uscisclients/addClientCases', {'message': 'Duplicate case number'}, status=409)
    response = admin_client.post('/wizard/complete/submit', follow_redirects=True)
    assert b'Duplicate case number' in response.data
    assert wizard_state(admin_client).current_step == 7
