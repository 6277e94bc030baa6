"""
Backend service package.

Each service wraps one area of the eFile Legal REST API on top of a shared
``ApiClient``. Request-scoped instances are built from the logged-in user's
token via the ``get_*_service`` helpers below.
"""

from flask import current_app, session

from .api_client import ApiClient, ApiError, ApiResponse
from .billing_service import BillingService
from .client_service import ClientService
from .company_service import CompanyService
from .document_service import DocumentService
from .immigration_service import ImmigrationService
from .settings_service import RoleService, SettingsService, resolve_sections_enabled

TOKEN_SESSION_KEY = 'api_token'


def get_api_client() -> ApiClient:
    """Client bound to the current request's bearer token."""
    return ApiClient(
        current_app.config['API_BASE_URL'],
        token=session.get(TOKEN_SESSION_KEY),
        timeout=current_app.config.get('API_TIMEOUT', 15),
    )


def remember_token(client: ApiClient) -> None:
    """Persist a token the backend may have rotated during the request."""
    if client.token and client.token != session.get(TOKEN_SESSION_KEY):
        session[TOKEN_SESSION_KEY] = client.token
        session.modified = True


def get_immigration_service() -> ImmigrationService:
    return ImmigrationService(get_api_client())


def get_client_service() -> ClientService:
    return ClientService(get_api_client())


def get_document_service() -> DocumentService:
    return DocumentService(get_api_client())


def get_company_service() -> CompanyService:
    return CompanyService(get_api_client())


def get_billing_service() -> BillingService:
    return BillingService(get_api_client())


def get_settings_service() -> SettingsService:
    enabled = resolve_sections_enabled(current_app.config.get('SETTINGS_SECTIONS_ENABLED'))
    return SettingsService(get_api_client(), sections_enabled=enabled)


def get_role_service() -> RoleService:
    return RoleService(get_api_client())


__all__ = [
    'ApiClient',
    'ApiError',
    'ApiResponse',
    'BillingService',
    'ClientService',
    'CompanyService',
    'DocumentService',
    'ImmigrationService',
    'RoleService',
    'SettingsService',
    'get_api_client',
    'remember_token',
    'get_immigration_service',
    'get_client_service',
    'get_document_service',
    'get_company_service',
    'get_billing_service',
    'get_settings_service',
    'get_role_service',
]
