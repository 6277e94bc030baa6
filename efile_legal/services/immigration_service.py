"""
Immigration catalog calls used by the form-selection and FOIA steps.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List

from ..domain.models import ImmigrationForm
from .api_client import ApiClient, ApiError, ApiResponse, expand_path
from .endpoints import IMMIGRATION_END_POINTS

logger = logging.getLogger(__name__)

NO_FORMS_MESSAGE = 'No forms available. Please try again later.'
LOAD_FORMS_FAILED_MESSAGE = 'Failed to load forms. Please try again.'


def _as_list(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, list):
        return [p for p in payload if isinstance(p, dict)]
    return []


class ImmigrationService:
    def __init__(self, client: ApiClient):
        self.client = client

    def get_categories(self) -> List[Dict[str, Any]]:
        try:
            response = self.client.get(IMMIGRATION_END_POINTS['CATEGORIES'])
        except ApiError as e:
            logger.error("Error fetching immigration categories: %s", e)
            raise
        return _as_list(response.data)

    def get_category_forms(self, category_id: str) -> List[Dict[str, Any]]:
        try:
            response = self.client.get(expand_path(IMMIGRATION_END_POINTS['CATEGORY_FORMS'], categoryId=category_id))
        except ApiError as e:
            logger.error("Error fetching forms for category %s: %s", category_id, e)
            raise
        return _as_list(response.data)

    def get_all_forms(self) -> List[ImmigrationForm]:
        """Every form of every category, tagged with its category name.

        A category whose forms fail to load contributes nothing; a failure to
        load the categories themselves propagates.
        """
        forms: List[ImmigrationForm] = []
        for category in self.get_categories():
            category_id = str(category.get('_id') or category.get('id') or '')
            category_name = category.get('name') or ''
            try:
                raw_forms = self.get_category_forms(category_id)
            except ApiError:
                logger.warning("Skipping forms for category %s", category_name or category_id)
                raw_forms = []
            forms.extend(ImmigrationForm.from_api(f, category_name) for f in raw_forms)
        return forms

    def get_category_requirements(self, category_id: str) -> List[Dict[str, Any]]:
        try:
            path = expand_path(IMMIGRATION_END_POINTS['CATEGORY_REQUIREMENTS'], categoryId=category_id)
            response = self.client.get(path)
        except ApiError as e:
            logger.error("Error fetching requirements for category %s: %s", category_id, e)
            raise
        return _as_list(response.data)

    def get_category_form_types(self, category_id: str) -> List[Dict[str, Any]]:
        try:
            path = expand_path(IMMIGRATION_END_POINTS['CATEGORY_FORM_TYPES'], categoryId=category_id)
            response = self.client.get(path)
        except ApiError as e:
            logger.error("Error fetching form types for category %s: %s", category_id, e)
            raise
        return _as_list(response.data)

    def get_category_details(self, category_id: str) -> Dict[str, Any]:
        """Load requirements and form types in parallel.

        Returns ``{'requirements', 'form_types', 'errors'}``; each failed half
        is reported in ``errors`` instead of raising.
        """
        result: Dict[str, Any] = {'requirements': [], 'form_types': [], 'errors': []}
        with ThreadPoolExecutor(max_workers=2) as executor:
            requirements = executor.submit(self.get_category_requirements, category_id)
            form_types = executor.submit(self.get_category_form_types, category_id)
            try:
                result['requirements'] = requirements.result()
            except ApiError:
                result['errors'].append('Failed to fetch requirements')
            try:
                result['form_types'] = form_types.result()
            except ApiError:
                result['errors'].append('Failed to fetch form types')
        return result

    def select_form_type(self, type_id: str) -> ApiResponse:
        try:
            return self.client.post(expand_path(IMMIGRATION_END_POINTS['FORM_TYPE_SELECT'], typeId=type_id))
        except ApiError as e:
            logger.error("Error selecting form type %s: %s", type_id, e)
            raise

    def get_form_type_subcategories(self, type_id: str) -> List[Dict[str, Any]]:
        try:
            path = expand_path(IMMIGRATION_END_POINTS['FORM_TYPE_SUBCATEGORIES'], typeId=type_id)
            response = self.client.get(path)
        except ApiError as e:
            logger.error("Error fetching subcategories for form type %s: %s", type_id, e)
            raise
        return _as_list(response.data)

    def process_form(self, form_id: str, case_info: Dict[str, Any]) -> ApiResponse:
        try:
            return self.client.post(
                expand_path(IMMIGRATION_END_POINTS['FORM_PROCESS'], formId=form_id),
                json={'caseNumber': case_info.get('case_number', '')},
            )
        except ApiError as e:
            logger.error("Error processing form %s: %s", form_id, e)
            raise
