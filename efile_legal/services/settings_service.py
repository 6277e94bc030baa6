"""
Settings console calls.

Each settings section is a slice stored by the backend per user under
``/api/v1/settings/<userId>/<section>``. Reads for sections that are switched
off return a "Method skipped" response without touching the network; writes
always go through.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..domain.models import Role
from .api_client import ApiClient, ApiError, ApiResponse, expand_path, skipped_response
from .endpoints import ROLE_END_POINTS, SETTINGS_END_POINTS

logger = logging.getLogger(__name__)

# Set to False to skip the read for that section
DEFAULT_SECTIONS_ENABLED: Dict[str, bool] = {
    'PROFILE': True,
    'ORGANIZATION': True,
    'NOTIFICATIONS': True,
    'SECURITY': True,
    'EMAIL': True,
    'INTEGRATIONS': True,
    'BILLING': False,
    'CASE_SETTINGS': True,
    'FORM_TEMPLATES': False,
    'REPORT_SETTINGS': True,
    'ROLES': False,
    'DATABASE': True,
    'SYSTEM': False,
    'AUDIT_LOGS': False,
    'BACKUP': False,
    'API_SETTINGS': False,
    'PERFORMANCE': False,
}


def resolve_sections_enabled(override: Optional[Any] = None) -> Dict[str, bool]:
    """Merge a config override into the default flags.

    ``override`` is either a mapping of section -> bool, or a comma separated
    string / iterable naming exactly the sections to enable.
    """
    flags = dict(DEFAULT_SECTIONS_ENABLED)
    if override is None or override == '':
        return flags
    if isinstance(override, dict):
        for key, value in override.items():
            if key.upper() in flags:
                flags[key.upper()] = bool(value)
        return flags
    if isinstance(override, str):
        names = [part.strip().upper() for part in override.split(',') if part.strip()]
    else:
        names = [str(part).strip().upper() for part in override]
    return {key: key in names for key in flags}


class SettingsService:
    def __init__(self, client: ApiClient, sections_enabled: Optional[Dict[str, bool]] = None):
        self.client = client
        self.sections_enabled = sections_enabled if sections_enabled is not None else dict(DEFAULT_SECTIONS_ENABLED)

    # -- generic plumbing --------------------------------------------------------

    def is_enabled(self, section: str) -> bool:
        return bool(self.sections_enabled.get(section, False))

    def _path(self, endpoint: str, user_id: str, **extra: str) -> str:
        return expand_path(SETTINGS_END_POINTS[endpoint], userId=user_id, **extra)

    def get_section(self, section: str, user_id: str) -> ApiResponse:
        if not self.is_enabled(section):
            logger.info("get %s settings is skipped.", section.lower())
            return skipped_response()
        try:
            return self.client.get(self._path(section, user_id))
        except ApiError as e:
            logger.error("Error fetching %s settings: %s", section.lower(), e)
            raise

    def update_section(self, section: str, user_id: str, payload: Dict[str, Any]) -> ApiResponse:
        try:
            return self.client.put(self._path(section, user_id), json=payload)
        except ApiError as e:
            logger.error("Error updating %s settings: %s", section.lower(), e)
            raise

    def _action(self, method: str, endpoint: str, user_id: str, label: str, **path_values: str) -> ApiResponse:
        try:
            return self.client.call(method, self._path(endpoint, user_id, **path_values))
        except ApiError as e:
            logger.error("Error %s: %s", label, e)
            raise

    # -- profile / organization / notifications ---------------------------------

    def get_profile(self, user_id: str) -> ApiResponse:
        return self.get_section('PROFILE', user_id)

    def update_profile(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('PROFILE', user_id, data)

    def get_organization(self, user_id: str) -> ApiResponse:
        return self.get_section('ORGANIZATION', user_id)

    def update_organization(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('ORGANIZATION', user_id, data)

    def get_notifications(self, user_id: str) -> ApiResponse:
        return self.get_section('NOTIFICATIONS', user_id)

    def update_notifications(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('NOTIFICATIONS', user_id, data)

    # -- security ----------------------------------------------------------------

    def get_security(self, user_id: str) -> ApiResponse:
        return self.get_section('SECURITY', user_id)

    def update_security(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('SECURITY', user_id, data)

    def sign_out_all_devices(self, user_id: str) -> ApiResponse:
        return self._action('POST', 'SECURITY_SIGNOUT_ALL', user_id, 'signing out all devices')

    # -- email / integrations / billing / users ---------------------------------

    def get_email_settings(self, user_id: str) -> ApiResponse:
        return self.get_section('EMAIL', user_id)

    def update_email_settings(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('EMAIL', user_id, data)

    def get_integrations(self, user_id: str) -> ApiResponse:
        return self.get_section('INTEGRATIONS', user_id)

    def update_integrations(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('INTEGRATIONS', user_id, data)

    def get_billing(self, user_id: str) -> ApiResponse:
        return self.get_section('BILLING', user_id)

    def update_billing(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('BILLING', user_id, data)

    def update_users(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('USERS', user_id, data)

    # -- cases / form templates / reports ---------------------------------------

    def get_case_settings(self, user_id: str) -> ApiResponse:
        return self.get_section('CASE_SETTINGS', user_id)

    def update_case_settings(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('CASE_SETTINGS', user_id, data)

    def get_form_templates(self, user_id: str) -> ApiResponse:
        return self.get_section('FORM_TEMPLATES', user_id)

    def update_form_templates(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('FORM_TEMPLATES', user_id, data)

    def get_report_settings(self, user_id: str) -> ApiResponse:
        return self.get_section('REPORT_SETTINGS', user_id)

    def update_report_settings(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('REPORT_SETTINGS', user_id, data)

    def delete_report_settings(self, user_id: str, report_id: str) -> ApiResponse:
        return self._action('DELETE', 'REPORT_SETTINGS_DELETE', user_id, 'deleting report settings',
                            reportId=report_id)

    # -- roles / database / system ----------------------------------------------

    def get_roles(self, user_id: str) -> ApiResponse:
        return self.get_section('ROLES', user_id)

    def update_roles(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('ROLES', user_id, data)

    def get_database_settings(self, user_id: str) -> ApiResponse:
        return self.get_section('DATABASE', user_id)

    def update_database_settings(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('DATABASE', user_id, data)

    def vacuum_database(self, user_id: str) -> ApiResponse:
        return self._action('POST', 'DATABASE_VACUUM', user_id, 'vacuuming database')

    def analyze_database(self, user_id: str) -> ApiResponse:
        return self._action('POST', 'DATABASE_ANALYZE', user_id, 'analyzing database')

    def export_database_schema(self, user_id: str) -> ApiResponse:
        """Download the schema dump; ``data`` holds the raw bytes."""
        try:
            content, resp = self.client.request('GET', self._path('DATABASE_EXPORT', user_id), raw=True)
        except ApiError as e:
            logger.error("Error exporting database schema: %s", e)
            raise
        return ApiResponse(data=content, status=resp.status_code, status_text=getattr(resp, 'reason', '') or '')

    def get_system_settings(self, user_id: str) -> ApiResponse:
        return self.get_section('SYSTEM', user_id)

    def update_system_settings(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('SYSTEM', user_id, data)

    # -- audit / backup / api / performance -------------------------------------

    def get_audit_logs(self, user_id: str) -> ApiResponse:
        return self.get_section('AUDIT_LOGS', user_id)

    def get_backup_settings(self, user_id: str) -> ApiResponse:
        return self.get_section('BACKUP', user_id)

    def update_backup_settings(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('BACKUP', user_id, data)

    def get_api_settings(self, user_id: str) -> ApiResponse:
        return self.get_section('API_SETTINGS', user_id)

    def update_api_settings(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('API_SETTINGS', user_id, data)

    def regenerate_api_keys(self, user_id: str) -> ApiResponse:
        return self._action('POST', 'API_KEYS_REGENERATE', user_id, 'regenerating API keys')

    def get_performance_settings(self, user_id: str) -> ApiResponse:
        return self.get_section('PERFORMANCE', user_id)

    def update_performance_settings(self, user_id: str, data: Dict[str, Any]) -> ApiResponse:
        return self.update_section('PERFORMANCE', user_id, data)


class RoleService:
    """Roles & permissions management."""

    def __init__(self, client: ApiClient):
        self.client = client

    def get_roles(self) -> List[Role]:
        try:
            response = self.client.get(ROLE_END_POINTS['ROLES'])
        except ApiError as e:
            logger.error("Error fetching roles: %s", e)
            raise
        return [Role.from_api(r) for r in response.data or [] if isinstance(r, dict)]

    def create_role(self, role: Role) -> ApiResponse:
        try:
            return self.client.post(ROLE_END_POINTS['ROLES'], json=role.to_api())
        except ApiError as e:
            logger.error("Error creating role %s: %s", role.name, e)
            raise

    def update_role(self, role_id: str, role: Role) -> ApiResponse:
        try:
            return self.client.put(expand_path(ROLE_END_POINTS['ROLE_BY_ID'], roleId=role_id), json=role.to_api())
        except ApiError as e:
            logger.error("Error updating role %s: %s", role_id, e)
            raise

    def delete_role(self, role_id: str) -> ApiResponse:
        try:
            return self.client.delete(expand_path(ROLE_END_POINTS['ROLE_BY_ID'], roleId=role_id))
        except ApiError as e:
            logger.error("Error deleting role %s: %s", role_id, e)
            raise

    def get_permissions(self, role_id: str) -> ApiResponse:
        try:
            return self.client.get(expand_path(ROLE_END_POINTS['PERMISSIONS'], roleId=role_id))
        except ApiError as e:
            logger.error("Error fetching permissions for role %s: %s", role_id, e)
            raise

    def update_permissions(self, role_id: str, permissions: Iterable[Dict[str, Any]]) -> ApiResponse:
        try:
            return self.client.put(
                expand_path(ROLE_END_POINTS['PERMISSIONS'], roleId=role_id),
                json={'permissions': list(permissions)},
            )
        except ApiError as e:
            logger.error("Error updating permissions for role %s: %s", role_id, e)
            raise
