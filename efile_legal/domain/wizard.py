"""
Case-intake wizard state machine.

The wizard is a linear sequence of eight steps. Each step owns exactly one
slice of the aggregate wizard data and is gated by a completion predicate:
moving forward is only possible once the current step is complete, moving
back is always possible. All state is plain JSON so it can live in the Flask
session between requests.
"""

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .catalog import find_category, find_subcategory
from .models import DocumentStatus, FoiaStatus, FormStatus


@dataclass(frozen=True)
class WizardStep:
    id: str
    title: str
    description: str
    data_key: Optional[str]


WIZARD_STEPS: List[WizardStep] = [
    WizardStep('forms', 'Form Selection', 'Select the immigration forms for this case', 'selected_forms'),
    WizardStep('categories', 'Category Selection', 'Choose the immigration category', 'selected_categories'),
    WizardStep('client', 'Client Information', 'Select or create the client', 'client_info'),
    WizardStep('foia', 'FOIA Requirement', 'Determine whether a FOIA request is needed', 'foia_info'),
    WizardStep('case', 'Case Details', 'Enter the case details', 'case_info'),
    WizardStep('documents', 'Document Upload', 'Upload supporting documents', 'documents'),
    WizardStep('processing', 'Form Processing', 'Process the selected forms', 'processed_forms'),
    WizardStep('complete', 'Complete', 'Review and finish', None),
]

CASE_FIELDS = ('case_number', 'priority_date', 'assigned_staff', 'case_notes')


def initial_wizard_data() -> Dict[str, Any]:
    return {
        'selected_forms': [],
        'selected_categories': {'category_id': '', 'subcategory_id': ''},
        'client_info': {'client_id': '', 'client_name': ''},
        'foia_info': {'foia_required': False, 'foia_status': FoiaStatus.NOT_REQUIRED.value},
        'case_info': {name: '' for name in CASE_FIELDS},
        'documents': [],
        'processed_forms': [],
    }


class FormWizard:
    """Holds the aggregate wizard data and the current step index."""

    def __init__(self, data: Optional[Dict[str, Any]] = None, current_step: int = 0):
        merged = initial_wizard_data()
        if data:
            merged.update({k: copy.deepcopy(v) for k, v in data.items() if k in merged})
        self.data = merged
        self.current_step = max(0, min(int(current_step or 0), self.last_index))

    # -- step bookkeeping --------------------------------------------------

    @property
    def steps(self) -> List[WizardStep]:
        return WIZARD_STEPS

    @property
    def last_index(self) -> int:
        return len(WIZARD_STEPS) - 1

    @property
    def step(self) -> WizardStep:
        return WIZARD_STEPS[self.current_step]

    @property
    def is_first(self) -> bool:
        return self.current_step == 0

    @property
    def is_last(self) -> bool:
        return self.current_step == self.last_index

    # -- completion predicates ---------------------------------------------

    def is_step_complete(self, index: int) -> bool:
        """Return True when the slice owned by step ``index`` is filled in."""
        data = self.data
        if index == 0:
            return len(data['selected_forms']) > 0
        if index == 1:
            selected = data['selected_categories']
            return bool(selected.get('category_id')) and bool(selected.get('subcategory_id'))
        if index == 2:
            return bool(data['client_info'].get('client_id'))
        if index == 3:
            foia = data['foia_info']
            return bool(foia.get('foia_required')) and foia.get('foia_status') != FoiaStatus.NOT_REQUIRED.value
        if index == 4:
            case_info = data['case_info']
            return all(case_info.get(name) for name in CASE_FIELDS)
        if index == 5:
            return len(data['documents']) > 0
        if index == 6:
            return len(data['processed_forms']) > 0
        if index == 7:
            return True
        return False

    def can_proceed(self) -> bool:
        return not self.is_last and self.is_step_complete(self.current_step)

    def can_access(self, index: int) -> bool:
        """A step is reachable when every step before it is complete."""
        if index < 0 or index > self.last_index:
            return False
        return all(self.is_step_complete(i) for i in range(index))

    def furthest_reachable(self) -> int:
        index = 0
        while index < self.last_index and self.is_step_complete(index):
            index += 1
        return index

    # -- navigation ----------------------------------------------------------

    def next(self) -> bool:
        if not self.can_proceed():
            return False
        self.current_step += 1
        return True

    def back(self) -> bool:
        if self.current_step <= 0:
            return False
        self.current_step -= 1
        return True

    def go_to(self, index: int) -> bool:
        if not self.can_access(index):
            return False
        self.current_step = index
        return True

    # -- data ------------------------------------------------------------------

    def update_step(self, value: Any) -> None:
        """Replace the data slice owned by the current step."""
        key = self.step.data_key
        if key is None:
            return
        self.data[key] = copy.deepcopy(value)

    def all_documents_completed(self) -> bool:
        documents = self.data['documents']
        return bool(documents) and all(d.get('status') == DocumentStatus.COMPLETED.value for d in documents)

    def all_forms_completed(self) -> bool:
        forms = self.data['processed_forms']
        return bool(forms) and all(f.get('status') == FormStatus.COMPLETED.value for f in forms)

    def summary(self) -> Dict[str, Any]:
        selected = self.data['selected_categories']
        category = find_category(selected.get('category_id', ''))
        subcategory = find_subcategory(selected.get('category_id', ''), selected.get('subcategory_id', ''))
        client = self.data['client_info']
        return {
            'case_number': self.data['case_info'].get('case_number', ''),
            'priority_date': self.data['case_info'].get('priority_date', ''),
            'assigned_staff': self.data['case_info'].get('assigned_staff', ''),
            'category': category.name if category else selected.get('category_id', ''),
            'subcategory': subcategory.name if subcategory else selected.get('subcategory_id', ''),
            'client_id': client.get('client_id', ''),
            'client_name': client.get('client_name') or client.get('client_id', ''),
            'foia_required': bool(self.data['foia_info'].get('foia_required')),
            'foia_status': self.data['foia_info'].get('foia_status'),
            'documents': [
                {'name': d.get('name', ''), 'status': d.get('status', '')}
                for d in self.data['documents']
            ],
            'forms': [
                {'name': f.get('name', ''), 'status': f.get('status', '')}
                for f in self.data['processed_forms']
            ],
            'all_documents_completed': self.all_documents_completed(),
            'all_forms_completed': self.all_forms_completed(),
        }

    # -- persistence -----------------------------------------------------------

    def to_session(self) -> Dict[str, Any]:
        return {'current_step': self.current_step, 'data': copy.deepcopy(self.data)}

    @classmethod
    def from_session(cls, payload: Optional[Dict[str, Any]]) -> 'FormWizard':
        payload = payload or {}
        return cls(payload.get('data'), payload.get('current_step', 0))
