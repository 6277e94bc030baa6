"""
Case Intake Wizard
==================

Guides staff through opening a new immigration case:
1. Form selection
2. Category selection
3. Client selection / creation
4. FOIA requirement
5. Case details
6. Document upload
7. Form processing
8. Completion summary and submission

State is kept in the Flask session between requests. Backward navigation is
always allowed; forward navigation requires every earlier step to be complete.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

from flask import Blueprint, render_template, request, redirect, url_for, flash, session, current_app
from flask_login import login_required

from .domain import intake
from .domain.catalog import CATEGORIES, find_category
from .domain.models import Address, Client, DocumentStatus, FoiaStatus, FormStatus
from .domain.wizard import FormWizard, WIZARD_STEPS
from .forms import (WizardNavForm, ToggleFormForm, CategoryChoiceForm, ClientSelectForm, ClientCreationForm,
                    FoiaRequirementForm, FormTypeSelectForm, CaseCreationForm, DocumentUploadForm, ItemActionForm,
                    SubmitCaseForm)
from .services import (ApiError, get_client_service, get_document_service, get_immigration_service,
                       remember_token)
from .services.client_service import CREATE_CLIENT_FAILED_MESSAGE
from .services.document_service import discard_upload, stage_upload
from .services.immigration_service import LOAD_FORMS_FAILED_MESSAGE, NO_FORMS_MESSAGE
from .utils.formatting import generate_case_number

wizard_bp = Blueprint('wizard', __name__, url_prefix='/wizard')

logger = logging.getLogger(__name__)

WIZARD_SESSION_KEY = 'wizard'
FORM_CATALOG_SESSION_KEY = 'wizard_form_catalog'


# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------

def get_wizard() -> FormWizard:
    """Load the wizard from the session (fresh wizard if none is in progress)."""
    session.permanent = True
    return FormWizard.from_session(session.get(WIZARD_SESSION_KEY))


def save_wizard(wizard: FormWizard) -> None:
    session.permanent = True
    session[WIZARD_SESSION_KEY] = wizard.to_session()
    session.modified = True


def clear_wizard_session() -> None:
    session.pop(WIZARD_SESSION_KEY, None)
    session.pop(FORM_CATALOG_SESSION_KEY, None)
    session.modified = True
    logger.debug("Wizard session cleared")


def get_form_catalog() -> Dict[str, Dict[str, Any]]:
    return session.get(FORM_CATALOG_SESSION_KEY, {})


def _require_step(wizard: FormWizard, step_id: str):
    """Redirect unless the wizard is currently on ``step_id``."""
    if wizard.step.id != step_id:
        flash('That action is not available on this step.', 'warning')
        return redirect(url_for('wizard.step'))
    return None


def _back_to_step():
    return redirect(url_for('wizard.step'))


# ---------------------------------------------------------------------------
# Entry points and navigation
# ---------------------------------------------------------------------------

@wizard_bp.route('/start')
@login_required
def start():
    """Start a new intake, discarding any wizard in progress."""
    clear_wizard_session()
    save_wizard(FormWizard())
    return redirect(url_for('wizard.step'))


@wizard_bp.route('/', methods=['GET'])
@login_required
def step():
    """Render the current step."""
    wizard = get_wizard()
    return _render_step(wizard)


@wizard_bp.route('/step/<int:step_num>', methods=['GET'])
@login_required
def goto(step_num: int):
    """Jump to a step by its 1-based number."""
    wizard = get_wizard()
    index = step_num - 1
    if index < 0 or index > wizard.last_index:
        return redirect(url_for('wizard.step'))
    if not wizard.go_to(index):
        reachable = wizard.furthest_reachable()
        logger.info("Blocked jump to step %s; furthest reachable is %s", step_num, reachable + 1)
        flash(f'Please complete "{WIZARD_STEPS[reachable].title}" first.', 'warning')
    save_wizard(wizard)
    return redirect(url_for('wizard.step'))


@wizard_bp.route('/navigate', methods=['POST'])
@login_required
def navigate():
    wizard = get_wizard()
    form = WizardNavForm()
    if form.validate_on_submit():
        if form.back.data:
            wizard.back()
        elif form.next.data:
            if not wizard.next():
                flash('Please complete this step before continuing.', 'warning')
    save_wizard(wizard)
    return _back_to_step()


def _render_step(wizard: FormWizard, **extra: Any):
    renderers = {
        'forms': _forms_context,
        'categories': _categories_context,
        'client': _client_context,
        'foia': _foia_context,
        'case': _case_context,
        'documents': _documents_context,
        'processing': _processing_context,
        'complete': _complete_context,
    }
    context = renderers[wizard.step.id](wizard)
    context.update(extra)
    save_wizard(wizard)
    return render_template(
        f'wizard/step_{wizard.step.id}.html',
        wizard=wizard,
        steps=WIZARD_STEPS,
        step_index=wizard.current_step,
        total_steps=len(WIZARD_STEPS),
        can_proceed=wizard.can_proceed(),
        nav_form=WizardNavForm(formdata=None),
        **context,
    )


# ---------------------------------------------------------------------------
# Step 1: form selection
# ---------------------------------------------------------------------------

def _forms_context(wizard: FormWizard) -> Dict[str, Any]:
    forms = []
    error: Optional[str] = None
    service = get_immigration_service()
    try:
        forms = service.get_all_forms()
        remember_token(service.client)
    except ApiError as e:
        logger.error("Error loading forms: %s", e)
        error = LOAD_FORMS_FAILED_MESSAGE
    if not error and not forms:
        error = NO_FORMS_MESSAGE
    if forms:
        session[FORM_CATALOG_SESSION_KEY] = {f.id: f.to_dict() for f in forms}
        session.modified = True
    return {
        'forms': forms,
        'error': error,
        'selected_forms': wizard.data['selected_forms'],
        'toggle_form': ToggleFormForm(formdata=None),
    }


@wizard_bp.route('/forms/toggle', methods=['POST'])
@login_required
def toggle_form():
    wizard = get_wizard()
    redirect_response = _require_step(wizard, 'forms')
    if redirect_response:
        return redirect_response
    form = ToggleFormForm()
    if form.validate_on_submit():
        wizard.update_step(intake.toggle_form(wizard.data['selected_forms'], form.form_id.data))
        save_wizard(wizard)
    return _back_to_step()


# ---------------------------------------------------------------------------
# Step 2: category selection
# ---------------------------------------------------------------------------

def _categories_context(wizard: FormWizard) -> Dict[str, Any]:
    selected = wizard.data['selected_categories']
    return {
        'categories': CATEGORIES,
        'selected': selected,
        'active_category': find_category(selected.get('category_id', '')),
        'choice_form': CategoryChoiceForm(formdata=None),
    }


@wizard_bp.route('/categories/select', methods=['POST'])
@login_required
def select_category():
    wizard = get_wizard()
    redirect_response = _require_step(wizard, 'categories')
    if redirect_response:
        return redirect_response
    form = CategoryChoiceForm()
    if not form.validate_on_submit():
        flash('Please choose a category.', 'error')
        return _back_to_step()
    selection = wizard.data['selected_categories']
    try:
        if form.category_id.data:
            selection = intake.select_category(selection, form.category_id.data)
        if form.subcategory_id.data:
            selection = intake.select_subcategory(selection, form.subcategory_id.data)
    except ValueError as e:
        flash(str(e), 'error')
        return _back_to_step()
    wizard.update_step(selection)
    save_wizard(wizard)
    return _back_to_step()


# ---------------------------------------------------------------------------
# Step 3: client
# ---------------------------------------------------------------------------

def _client_context(wizard: FormWizard) -> Dict[str, Any]:
    clients = []
    error = None
    try:
        clients = get_client_service().get_all_clients()
    except ApiError as e:
        logger.error("Error loading clients: %s", e)
        error = 'Failed to load clients. Please try again.'
    return {
        'clients': clients,
        'client_error': error,
        'client_info': wizard.data['client_info'],
        'select_form': ClientSelectForm(formdata=None),
        'create_form': ClientCreationForm(formdata=None),
        'show_create': request.args.get('new') == '1',
    }


@wizard_bp.route('/client/select', methods=['POST'])
@login_required
def select_client():
    wizard = get_wizard()
    redirect_response = _require_step(wizard, 'client')
    if redirect_response:
        return redirect_response
    form = ClientSelectForm()
    if form.validate_on_submit():
        wizard.update_step({'client_id': form.client_id.data, 'client_name': form.client_name.data or ''})
        save_wizard(wizard)
    else:
        flash('Please select a client.', 'error')
    return _back_to_step()


@wizard_bp.route('/client/create', methods=['POST'])
@login_required
def create_client():
    wizard = get_wizard()
    redirect_response = _require_step(wizard, 'client')
    if redirect_response:
        return redirect_response
    form = ClientCreationForm()
    if not form.validate_on_submit():
        return _render_step(wizard, create_form=form, show_create=True)

    new_client = Client(
        first_name=form.first_name.data.strip(),
        last_name=form.last_name.data.strip(),
        email=form.email.data.strip(),
        phone=form.phone.data.strip(),
        date_of_birth=form.date_of_birth.data.isoformat(),
        nationality=form.nationality.data.strip(),
        address=Address(
            street=form.street.data.strip(),
            city=form.city.data.strip(),
            state=form.state.data.strip(),
            zip_code=form.zip_code.data.strip(),
            country=form.country.data.strip(),
        ),
    )
    try:
        created = get_client_service().add_client_contact(new_client)
    except ApiError as e:
        logger.error("Error creating client: %s", e)
        return _render_step(wizard, create_form=form, show_create=True, create_error=CREATE_CLIENT_FAILED_MESSAGE)

    wizard.update_step({'client_id': created.id, 'client_name': created.name})
    save_wizard(wizard)
    flash(f'Client {created.name} created.', 'success')
    return _back_to_step()


# ---------------------------------------------------------------------------
# Step 4: FOIA
# ---------------------------------------------------------------------------

def _foia_context(wizard: FormWizard) -> Dict[str, Any]:
    foia = wizard.data['foia_info']
    form = FoiaRequirementForm(formdata=None)
    form.foia_required.data = 'yes' if foia.get('foia_required') else 'no'
    if foia.get('foia_status') != FoiaStatus.NOT_REQUIRED.value:
        form.foia_status.data = foia.get('foia_status')

    context: Dict[str, Any] = {
        'foia': foia,
        'foia_form': form,
        'type_form': FormTypeSelectForm(formdata=None),
        'foia_categories': [],
        'foia_errors': [],
        'requirements': [],
        'form_types': [],
        'subcategories': [],
        'foia_category_id': request.args.get('foia_category', ''),
        'selected_type_id': request.args.get('type_id', ''),
    }
    if not foia.get('foia_required'):
        return context

    service = get_immigration_service()
    try:
        context['foia_categories'] = service.get_categories()
    except ApiError:
        context['foia_errors'].append('Failed to fetch categories')
        return context

    category_id = context['foia_category_id']
    if category_id:
        details = service.get_category_details(category_id)
        context['requirements'] = details['requirements']
        context['form_types'] = details['form_types']
        context['foia_errors'].extend(details['errors'])
    return context


@wizard_bp.route('/foia', methods=['POST'])
@login_required
def save_foia():
    wizard = get_wizard()
    redirect_response = _require_step(wizard, 'foia')
    if redirect_response:
        return redirect_response
    form = FoiaRequirementForm()
    if not form.validate_on_submit():
        flash('Please answer whether a FOIA request is required.', 'error')
        return _back_to_step()

    required = form.foia_required.data == 'yes'
    current = wizard.data['foia_info']
    if required != bool(current.get('foia_required')):
        updated = intake.set_foia_required(current, required)
    else:
        updated = dict(current)
    if required and form.foia_status.data:
        try:
            updated = intake.set_foia_status(updated, form.foia_status.data)
        except ValueError:
            flash('Unknown FOIA status.', 'error')
            return _back_to_step()
    wizard.update_step(updated)
    save_wizard(wizard)
    return _back_to_step()


@wizard_bp.route('/foia/form-type', methods=['POST'])
@login_required
def select_foia_form_type():
    wizard = get_wizard()
    redirect_response = _require_step(wizard, 'foia')
    if redirect_response:
        return redirect_response
    form = FormTypeSelectForm()
    if not form.validate_on_submit():
        return _back_to_step()

    service = get_immigration_service()
    try:
        service.select_form_type(form.type_id.data)
        subcategories = service.get_form_type_subcategories(form.type_id.data)
    except ApiError:
        flash('Failed to select form type', 'error')
        return redirect(url_for('wizard.step', foia_category=form.category_id.data))
    foia = dict(wizard.data['foia_info'])
    foia['form_type_id'] = form.type_id.data
    wizard.update_step(foia)
    return _render_step(
        wizard,
        foia_category_id=form.category_id.data,
        selected_type_id=form.type_id.data,
        subcategories=subcategories,
    )


# ---------------------------------------------------------------------------
# Step 5: case details
# ---------------------------------------------------------------------------

def _case_context(wizard: FormWizard) -> Dict[str, Any]:
    case_info = wizard.data['case_info']
    form = CaseCreationForm(formdata=None)
    form.case_number.data = case_info.get('case_number')
    form.assigned_staff.data = case_info.get('assigned_staff')
    form.case_notes.data = case_info.get('case_notes')
    if case_info.get('priority_date'):
        try:
            form.priority_date.data = date.fromisoformat(case_info['priority_date'])
        except ValueError:
            form.priority_date.data = None
    return {
        'case_form': form,
        'case_info': case_info,
        'show_preview': request.args.get('preview') == '1',
    }


@wizard_bp.route('/case', methods=['POST'])
@login_required
def save_case():
    wizard = get_wizard()
    redirect_response = _require_step(wizard, 'case')
    if redirect_response:
        return redirect_response
    form = CaseCreationForm()
    if form.generate.data:
        case_info = dict(wizard.data['case_info'])
        case_info['case_number'] = generate_case_number()
        wizard.update_step(case_info)
        save_wizard(wizard)
        return _back_to_step()
    if not form.validate_on_submit():
        return _render_step(wizard, case_form=form)

    wizard.update_step({
        'case_number': form.case_number.data.strip(),
        'priority_date': form.priority_date.data.isoformat(),
        'assigned_staff': form.assigned_staff.data.strip(),
        'case_notes': form.case_notes.data.strip(),
    })
    save_wizard(wizard)
    flash('Case details saved.', 'success')
    return redirect(url_for('wizard.step', preview=1))


# ---------------------------------------------------------------------------
# Step 6: documents
# ---------------------------------------------------------------------------

def _documents_context(wizard: FormWizard) -> Dict[str, Any]:
    return {
        'documents': wizard.data['documents'],
        'upload_form': DocumentUploadForm(formdata=None),
        'action_form': ItemActionForm(formdata=None),
        'allowed_extensions': current_app.config['UPLOAD_ALLOWED_EXTENSIONS'],
        'accept': ','.join('.' + ext for ext in current_app.config['UPLOAD_ALLOWED_EXTENSIONS']),
        'max_file_size': current_app.config['UPLOAD_MAX_FILE_SIZE'],
        'has_pending': bool(intake.pending_ids(wizard.data['documents'])),
    }


def _file_size(file_storage) -> int:
    stream = file_storage.stream
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(0)
    return size


@wizard_bp.route('/documents/add', methods=['POST'])
@login_required
def add_documents():
    wizard = get_wizard()
    redirect_response = _require_step(wizard, 'documents')
    if redirect_response:
        return redirect_response
    form = DocumentUploadForm()
    if not form.validate_on_submit():
        return _back_to_step()

    documents = list(wizard.data['documents'])
    added = 0
    for file_storage in request.files.getlist(form.files.name):
        if not file_storage or not file_storage.filename:
            continue
        size = _file_size(file_storage)
        problem = intake.validate_document(
            file_storage.filename,
            size,
            current_app.config['UPLOAD_ALLOWED_EXTENSIONS'],
            current_app.config['UPLOAD_MAX_FILE_SIZE'],
        )
        if problem:
            flash(problem, 'error')
            continue
        document = intake.new_document(file_storage.filename, file_storage.mimetype, size)
        document['stored_path'] = stage_upload(file_storage, current_app.config['UPLOAD_FOLDER'], document['id'])
        documents.append(document)
        added += 1
    if added:
        wizard.update_step(documents)
        save_wizard(wizard)
    elif not documents:
        flash('Please choose at least one file.', 'warning')
    return _back_to_step()


def _upload_one(wizard: FormWizard, document_id: str) -> bool:
    documents = intake.mark_document(wizard.data['documents'], document_id, DocumentStatus.UPLOADING.value)
    document = next((d for d in documents if d['id'] == document_id), None)
    if document is None:
        return False
    try:
        result = get_document_service().upload(document, wizard.data['case_info'].get('case_number', ''))
    except ApiError as e:
        logger.error("Upload failed for %s: %s", document.get('name'), e)
        documents = intake.mark_document(documents, document_id, DocumentStatus.ERROR.value,
                                         intake.UPLOAD_FAILED_MESSAGE)
        wizard.update_step(documents)
        return False
    documents = intake.mark_document(documents, document_id, DocumentStatus.COMPLETED.value,
                                     remote_id=result.get('_id') or result.get('id'))
    wizard.update_step(documents)
    return True


@wizard_bp.route('/documents/<document_id>/upload', methods=['POST'])
@login_required
def upload_document(document_id):
    wizard = get_wizard()
    redirect_response = _require_step(wizard, 'documents')
    if redirect_response:
        return redirect_response
    if ItemActionForm().validate_on_submit():
        if not _upload_one(wizard, document_id):
            flash(intake.UPLOAD_FAILED_MESSAGE, 'error')
        save_wizard(wizard)
    return _back_to_step()


@wizard_bp.route('/documents/upload-all', methods=['POST'])
@login_required
def upload_all_documents():
    wizard = get_wizard()
    redirect_response = _require_step(wizard, 'documents')
    if redirect_response:
        return redirect_response
    if ItemActionForm().validate_on_submit():
        failures = 0
        # One at a time, in list order
        for document_id in intake.pending_ids(wizard.data['documents']):
            if not _upload_one(wizard, document_id):
                failures += 1
        save_wizard(wizard)
        if failures:
            flash(f'{failures} document(s) failed to upload.', 'error')
    return _back_to_step()


@wizard_bp.route('/documents/<document_id>/remove', methods=['POST'])
@login_required
def remove_document(document_id):
    wizard = get_wizard()
    redirect_response = _require_step(wizard, 'documents')
    if redirect_response:
        return redirect_response
    if ItemActionForm().validate_on_submit():
        for document in wizard.data['documents']:
            if document.get('id') == document_id:
                discard_upload(document.get('stored_path', ''))
        wizard.update_step(intake.remove_document(wizard.data['documents'], document_id))
        save_wizard(wizard)
    return _back_to_step()


# ---------------------------------------------------------------------------
# Step 7: form processing
# ---------------------------------------------------------------------------

def _processing_context(wizard: FormWizard) -> Dict[str, Any]:
    seeded = intake.seed_processed_forms(
        wizard.data['processed_forms'],
        wizard.data['selected_forms'],
        get_form_catalog(),
    )
    if seeded != wizard.data['processed_forms']:
        wizard.update_step(seeded)
    return {
        'processed_forms': wizard.data['processed_forms'],
        'action_form': ItemActionForm(formdata=None),
        'has_pending': bool(intake.pending_ids(wizard.data['processed_forms'])),
    }


def _process_one(wizard: FormWizard, form_id: str) -> bool:
    forms = intake.mark_form(wizard.data['processed_forms'], form_id, FormStatus.PROCESSING.value)
    try:
        get_immigration_service().process_form(form_id, wizard.data['case_info'])
    except ApiError as e:
        logger.error("Processing failed for form %s: %s", form_id, e)
        wizard.update_step(intake.mark_form(forms, form_id, FormStatus.ERROR.value,
                                            intake.PROCESSING_FAILED_MESSAGE))
        return False
    wizard.update_step(intake.mark_form(forms, form_id, FormStatus.COMPLETED.value))
    return True


@wizard_bp.route('/processing/<form_id>/process', methods=['POST'])
@login_required
def process_form(form_id):
    wizard = get_wizard()
    redirect_response = _require_step(wizard, 'processing')
    if redirect_response:
        return redirect_response
    if ItemActionForm().validate_on_submit():
        if not _process_one(wizard, form_id):
            flash(intake.PROCESSING_FAILED_MESSAGE, 'error')
        save_wizard(wizard)
    return _back_to_step()


@wizard_bp.route('/processing/process-all', methods=['POST'])
@login_required
def process_all_forms():
    wizard = get_wizard()
    redirect_response = _require_step(wizard, 'processing')
    if redirect_response:
        return redirect_response
    if ItemActionForm().validate_on_submit():
        failures = 0
        for form_id in intake.pending_ids(wizard.data['processed_forms']):
            if not _process_one(wizard, form_id):
                failures += 1
        save_wizard(wizard)
        if failures:
            flash(f'{failures} form(s) failed to process.', 'error')
    return _back_to_step()


@wizard_bp.route('/processing/<form_id>/retry', methods=['POST'])
@login_required
def retry_form(form_id):
    wizard = get_wizard()
    redirect_response = _require_step(wizard, 'processing')
    if redirect_response:
        return redirect_response
    if ItemActionForm().validate_on_submit():
        wizard.update_step(intake.retry_form(wizard.data['processed_forms'], form_id))
        save_wizard(wizard)
    return _back_to_step()


# ---------------------------------------------------------------------------
# Step 8: completion
# ---------------------------------------------------------------------------

NEXT_STEPS = [
    'Review the case details and ensure all information is correct',
    'Monitor the case status through the dashboard',
    'Receive notifications about case updates and required actions',
    'Contact your assigned case manager for any questions or concerns',
]


def _complete_context(wizard: FormWizard) -> Dict[str, Any]:
    return {
        'summary': wizard.summary(),
        'next_steps': NEXT_STEPS,
        'submit_form': SubmitCaseForm(formdata=None),
    }


@wizard_bp.route('/complete/submit', methods=['POST'])
@login_required
def submit_case():
    wizard = get_wizard()
    redirect_response = _require_step(wizard, 'complete')
    if redirect_response:
        return redirect_response
    if not SubmitCaseForm().validate_on_submit():
        return _back_to_step()
    summary = wizard.summary()
    try:
        get_client_service().add_client_case(summary)
    except ApiError as e:
        logger.error("Error submitting case %s: %s", summary.get('case_number'), e)
        flash(f'Failed to submit case: {e.message}', 'error')
        return _back_to_step()

    for document in wizard.data['documents']:
        discard_upload(document.get('stored_path', ''))
    clear_wizard_session()
    flash(f"Case {summary.get('case_number')} submitted.", 'success')
    return redirect(url_for('main.index'))
