"""
Company directory calls.

Thin wrapper over the companies endpoints. Failures are logged with context
and re-raised as ApiError for the caller to surface.
"""

import logging
from typing import Any, Dict, Iterable, List

from ..domain.models import Company, CompanyStatus, CompanyType
from .api_client import ApiClient, ApiError, ApiResponse, expand_path, skipped_response
from .endpoints import COMPANY_END_POINTS

logger = logging.getLogger(__name__)

# Set to False to skip the call entirely
IS_GETCOMPANIES_ENABLED = True
IS_GETCOMPANYUSERS_ENABLED = True


class CompanyService:
    def __init__(self, client: ApiClient):
        self.client = client

    def get_all_companies_list(self, user_id: str) -> ApiResponse:
        if not IS_GETCOMPANIES_ENABLED:
            logger.info("get_all_companies_list is skipped.")
            return skipped_response()
        try:
            path = expand_path(COMPANY_END_POINTS['GETCOMPANIESLIST'], userId=user_id)
            return self.client.get(path, data_key='companies')
        except ApiError as e:
            logger.error("Error fetching companies: %s", e)
            raise

    def get_company_users(self, company_id: str) -> ApiResponse:
        if not IS_GETCOMPANYUSERS_ENABLED:
            logger.info("get_company_users is skipped.")
            return skipped_response()
        try:
            path = expand_path(COMPANY_END_POINTS['GETCOMPANYUSERS'], id=company_id)
            return self.client.get(path, data_key='users')
        except ApiError as e:
            logger.error("Error fetching company users for %s: %s", company_id, e)
            raise

    def get_company_by_id(self, company_id: str) -> ApiResponse:
        try:
            path = expand_path(COMPANY_END_POINTS['GETCOMPANYBYID'], id=company_id)
            return self.client.get(path)
        except ApiError as e:
            logger.error("Error fetching company %s: %s", company_id, e)
            raise

    def list_companies(self, user_id: str) -> List[Company]:
        response = self.get_all_companies_list(user_id)
        return [Company.from_api(c) for c in response.data or [] if isinstance(c, dict)]


def company_matches_query(company: Company, query: str) -> bool:
    """Case-insensitive match of ``query`` against the searchable company fields."""
    if not query:
        return True
    needle = query.strip().lower()
    values = (
        company.name,
        company.email,
        company.phone,
        company.address.city,
        company.address.state,
        company.type,
        company.license_number,
    )
    return any(needle in (value or '').lower() for value in values)


def filter_companies(companies: Iterable[Company], query: str) -> List[Company]:
    return [c for c in companies if company_matches_query(c, query)]


def company_stats(companies: List[Company], subscriptions: Dict[str, Any]) -> Dict[str, int]:
    """Headline numbers for the companies page."""
    return {
        'law_firms': sum(1 for c in companies if c.type == CompanyType.LAW_FIRM.value),
        'active_companies': sum(1 for c in companies if c.status == CompanyStatus.ACTIVE.value),
        'active_subscriptions': sum(
            1 for c in companies
            if subscriptions.get(c.id) is not None and subscriptions[c.id].is_active
        ),
        'total_users': sum(c.user_count for c in companies),
    }
