"""
Per-step transitions for the intake wizard.

Each helper takes the current slice of wizard data and returns the new
slice; none of them mutate their input. Network side effects (uploads, form
processing) live in the services layer and report back through
``mark_document``/``mark_form``.
"""

import copy
import os
import uuid
from typing import Any, Dict, Iterable, List, Optional

from .catalog import find_category
from .models import DocumentStatus, FoiaStatus, FormStatus

UPLOAD_FAILED_MESSAGE = 'Upload failed'
PROCESSING_FAILED_MESSAGE = 'Processing failed'

STATUS_COLORS = {
    FormStatus.PENDING.value: 'yellow',
    FormStatus.PROCESSING.value: 'blue',
    FormStatus.COMPLETED.value: 'green',
    FormStatus.ERROR.value: 'red',
}


# -- forms ---------------------------------------------------------------------

def toggle_form(selected_forms: List[str], form_id: str) -> List[str]:
    """Add ``form_id`` to the selection, or remove it if already selected."""
    if form_id in selected_forms:
        return [f for f in selected_forms if f != form_id]
    return list(selected_forms) + [form_id]


# -- categories ----------------------------------------------------------------

def select_category(selection: Dict[str, str], category_id: str) -> Dict[str, str]:
    if find_category(category_id) is None:
        raise ValueError(f"Unknown category: {category_id}")
    if selection.get('category_id') == category_id:
        return dict(selection)
    # A different category invalidates the subcategory choice
    return {'category_id': category_id, 'subcategory_id': ''}


def select_subcategory(selection: Dict[str, str], subcategory_id: str) -> Dict[str, str]:
    category = find_category(selection.get('category_id', ''))
    if category is None:
        raise ValueError('Select a category first')
    if subcategory_id not in {s.id for s in category.subcategories}:
        raise ValueError(f"Unknown subcategory: {subcategory_id}")
    return {'category_id': category.id, 'subcategory_id': subcategory_id}


# -- FOIA ----------------------------------------------------------------------

def set_foia_required(foia_info: Dict[str, Any], required: bool) -> Dict[str, Any]:
    status = FoiaStatus.PENDING.value if required else FoiaStatus.NOT_REQUIRED.value
    updated = dict(foia_info)
    updated['foia_required'] = bool(required)
    updated['foia_status'] = status
    return updated


def set_foia_status(foia_info: Dict[str, Any], status: str) -> Dict[str, Any]:
    FoiaStatus(status)  # raises ValueError for unknown statuses
    updated = dict(foia_info)
    updated['foia_status'] = status
    return updated


# -- documents -----------------------------------------------------------------

def file_extension(filename: str) -> str:
    return os.path.splitext(filename or '')[1].lstrip('.').lower()


def validate_document(filename: str, size: int, allowed_extensions: Iterable[str], max_size: int) -> Optional[str]:
    """Return an error message for an unacceptable file, or None."""
    if not filename:
        return 'No file selected'
    allowed = {ext.lower() for ext in allowed_extensions}
    if file_extension(filename) not in allowed:
        return f"File type not allowed. Accepted types: {', '.join(sorted(allowed))}"
    if size > max_size:
        return f"{filename} exceeds the maximum file size"
    return None


def new_document(filename: str, content_type: str, size: int, stored_path: str = '') -> Dict[str, Any]:
    return {
        'id': uuid.uuid4().hex[:9],
        'name': filename,
        'type': content_type or 'application/octet-stream',
        'size': int(size),
        'status': DocumentStatus.PENDING.value,
        'stored_path': stored_path,
        'error': None,
    }


def mark_document(documents: List[Dict[str, Any]], document_id: str, status: str,
                  error: Optional[str] = None, **extra: Any) -> List[Dict[str, Any]]:
    DocumentStatus(status)
    updated = copy.deepcopy(documents)
    for document in updated:
        if document.get('id') == document_id:
            document['status'] = status
            document['error'] = error
            document.update(extra)
    return updated


def remove_document(documents: List[Dict[str, Any]], document_id: str) -> List[Dict[str, Any]]:
    return [copy.deepcopy(d) for d in documents if d.get('id') != document_id]


def pending_ids(items: List[Dict[str, Any]]) -> List[str]:
    return [item['id'] for item in items if item.get('status') == 'pending']


# -- form processing ------------------------------------------------------------

def seed_processed_forms(processed_forms: List[Dict[str, Any]], selected_forms: List[str],
                         forms_by_id: Optional[Dict[str, Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
    """Build the processing queue from the selected forms when it is still empty."""
    if processed_forms:
        return copy.deepcopy(processed_forms)
    forms_by_id = forms_by_id or {}
    seeded = []
    for form_id in selected_forms:
        info = forms_by_id.get(form_id) or {}
        seeded.append({
            'id': form_id,
            'name': info.get('name') or form_id,
            'form_number': info.get('form_number', ''),
            'status': FormStatus.PENDING.value,
            'error': None,
        })
    return seeded


def mark_form(forms: List[Dict[str, Any]], form_id: str, status: str,
              error: Optional[str] = None) -> List[Dict[str, Any]]:
    FormStatus(status)
    updated = copy.deepcopy(forms)
    for form in updated:
        if form.get('id') == form_id:
            form['status'] = status
            form['error'] = error
    return updated


def retry_form(forms: List[Dict[str, Any]], form_id: str) -> List[Dict[str, Any]]:
    return mark_form(forms, form_id, FormStatus.PENDING.value, None)


def status_color(status: str) -> str:
    return STATUS_COLORS.get(status, 'gray')
