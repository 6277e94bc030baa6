"""Tests for the intake wizard state machine."""
from efile_legal.domain.wizard import FormWizard, WIZARD_STEPS, initial_wizard_data


def _complete_through(wizard, last_index):
    data = wizard.data
    fillers = [
        lambda: data.update(selected_forms=['f1']),
        lambda: data.update(selected_categories={'category_id': 'family', 'subcategory_id': 'immediate'}),
        lambda: data.update(client_info={'client_id': 'c1', 'client_name': 'Ana Lopez'}),
        lambda: data.update(foia_info={'foia_required': True, 'foia_status': 'pending'}),
        lambda: data.update(case_info={'case_number': 'CASE-1', 'priority_date': '2024-01-01',
                                       'assigned_staff': 'J. Doe', 'case_notes': 'notes'}),
        lambda: data.update(documents=[{'id': 'd1', 'name': 'passport.pdf', 'status': 'completed'}]),
        lambda: data.update(processed_forms=[{'id': 'f1', 'name': 'I-130', 'status': 'completed'}]),
    ]
    for fill in fillers[:last_index + 1]:
        fill()


def test_steps_are_in_order():
    assert [s.id for s in WIZARD_STEPS] == [
        'forms', 'categories', 'client', 'foia', 'case', 'documents', 'processing', 'complete',
    ]
    assert WIZARD_STEPS[3].title == 'FOIA Requirement'


def test_initial_state():
    wizard = FormWizard()
    assert wizard.current_step == 0
    assert wizard.data == initial_wizard_data()
    assert wizard.is_first
    assert not wizard.can_proceed()


def test_next_is_blocked_until_step_complete():
    wizard = FormWizard()
    assert wizard.next() is False
    assert wizard.current_step == 0

    wizard.update_step(['f1'])
    assert wizard.next() is True
    assert wizard.current_step == 1


def test_back_is_noop_on_first_step_and_always_allowed_otherwise():
    wizard = FormWizard()
    assert wizard.back() is False
    assert wizard.current_step == 0

    _complete_through(wizard, 1)
    wizard.go_to(2)
    # Clearing an earlier slice does not block going back
    wizard.data['selected_forms'] = []
    assert wizard.back() is True
    assert wizard.current_step == 1


def test_category_requires_both_parts():
    wizard = FormWizard()
    wizard.data['selected_categories'] = {'category_id': 'family', 'subcategory_id': ''}
    assert not wizard.is_step_complete(1)
    wizard.data['selected_categories']['subcategory_id'] = 'immediate'
    assert wizard.is_step_complete(1)


def test_foia_step_completes_only_when_required():
    wizard = FormWizard()
    assert not wizard.is_step_complete(3)

    wizard.data['foia_info'] = {'foia_required': False, 'foia_status': 'not_required'}
    assert not wizard.is_step_complete(3)

    wizard.data['foia_info'] = {'foia_required': True, 'foia_status': 'pending'}
    assert wizard.is_step_complete(3)

    wizard.data['foia_info'] = {'foia_required': True, 'foia_status': 'not_required'}
    assert not wizard.is_step_complete(3)


def test_case_step_needs_all_four_fields():
    wizard = FormWizard()
    wizard.data['case_info'] = {'case_number': 'CASE-1', 'priority_date': '2024-01-01',
                                'assigned_staff': 'J. Doe', 'case_notes': ''}
    assert not wizard.is_step_complete(4)
    wizard.data['case_info']['case_notes'] = 'Spouse petition'
    assert wizard.is_step_complete(4)


def test_last_step_is_always_complete_and_unknown_index_is_not():
    wizard = FormWizard()
    assert wizard.is_step_complete(7)
    assert not wizard.is_step_complete(8)
    assert not wizard.is_step_complete(-1)


def test_cannot_proceed_past_last_step():
    wizard = FormWizard()
    _complete_through(wizard, 6)
    assert wizard.go_to(7)
    assert wizard.is_last
    assert not wizard.can_proceed()
    assert wizard.next() is False
    assert wizard.current_step == 7


def test_go_to_requires_all_earlier_steps():
    wizard = FormWizard()
    _complete_through(wizard, 1)
    assert wizard.furthest_reachable() == 2
    assert wizard.go_to(2)
    assert not wizard.go_to(4)
    assert wizard.current_step == 2
    assert wizard.go_to(0)


def test_update_step_replaces_current_slice_only():
    wizard = FormWizard()
    _complete_through(wizard, 1)
    wizard.go_to(2)
    wizard.update_step({'client_id': 'c9', 'client_name': 'Li Wei'})
    assert wizard.data['client_info'] == {'client_id': 'c9', 'client_name': 'Li Wei'}
    assert wizard.data['selected_forms'] == ['f1']


def test_update_step_on_complete_step_is_ignored():
    wizard = FormWizard()
    _complete_through(wizard, 6)
    wizard.go_to(7)
    before = wizard.to_session()
    wizard.update_step({'anything': True})
    assert wizard.to_session() == before


def test_summary_resolves_catalog_names():
    wizard = FormWizard()
    _complete_through(wizard, 6)
    summary = wizard.summary()
    assert summary['case_number'] == 'CASE-1'
    assert summary['category'] == 'Family-Based Immigration'
    assert summary['subcategory'] == 'Immediate Relatives'
    assert summary['client_name'] == 'Ana Lopez'
    assert summary['documents'] == [{'name': 'passport.pdf', 'status': 'completed'}]
    assert summary['forms'] == [{'name': 'I-130', 'status': 'completed'}]
    assert summary['all_documents_completed']
    assert summary['all_forms_completed']


def test_summary_falls_back_to_client_id():
    wizard = FormWizard()
    wizard.data['client_info'] = {'client_id': 'c1', 'client_name': ''}
    assert wizard.summary()['client_name'] == 'c1'


def test_session_round_trip_keeps_position():
    wizard = FormWizard()
    _complete_through(wizard, 2)
    wizard.go_to(3)
    restored = FormWizard.from_session(wizard.to_session())
    assert restored.current_step == 3
    assert restored.data == wizard.data
    assert FormWizard.from_session(None).current_step == 0
