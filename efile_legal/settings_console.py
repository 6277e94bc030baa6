"""
Settings console.

One page with a tab per settings area. Tabs are filtered by role: admins see
everything, attorneys additionally see the practice-management tabs, and
everyone else only sees the personal/organization tabs. Each tab loads its
slice from the backend on GET and writes it back on POST.
"""

import logging
import re
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type

from flask import (Blueprint, render_template, request, redirect, url_for, flash, abort, jsonify, current_app,
                   Response)
from flask_login import login_required, current_user
from flask_wtf import FlaskForm

from .domain.models import (Permission, PermissionAction, PermissionModule, Role, UserRole, now_utc,
                            parse_api_datetime)
from .forms import (ProfileSettingsForm, OrganizationSettingsForm, NotificationSettingsForm, SecuritySettingsForm,
                    EmailSettingsForm, IntegrationSettingsForm, BillingSettingsForm, UserManagementSettingsForm,
                    CaseSettingsForm, FormTemplateSettingsForm, ReportSettingsForm, DatabaseSettingsForm,
                    SystemSettingsForm, BackupSettingsForm, ApiSettingsForm, PerformanceSettingsForm, RoleForm,
                    ConfirmDeleteForm, ItemActionForm)
from .services import ApiError, ApiResponse, get_role_service, get_settings_service
from .utils.simple_cache import settings_cache

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')

DEFAULT_TAB = 'profile'

# Keep cached slices well past the poll interval; freshness is decided by age
CACHE_TTL_SECONDS = 3600

_SENSITIVE_KEYWORDS = (
    'password',
    'passwd',
    'secret',
    'token',
    'api_key',
    'apikey',
    'smtp_password',
)

_SENSITIVE_REGEXES = [
    re.compile(rf"(?i)({keyword}['\"]?\s*[=:]\s*['\"]?)([^\s,;'\"}}]+)") for keyword in _SENSITIVE_KEYWORDS
]


def _sanitize_for_logging(value: str, extra_secrets: Optional[Iterable[str]] = None) -> str:
    """Mask sensitive information like passwords or tokens in log messages."""
    if not isinstance(value, str) or not value:
        return value

    sanitized = value
    for pattern in _SENSITIVE_REGEXES:
        sanitized = pattern.sub(lambda m: f"{m.group(1)}<redacted>", sanitized)

    if extra_secrets:
        for secret in extra_secrets:
            if secret:
                sanitized = sanitized.replace(secret, '<redacted>')

    return sanitized


def _log(level: str, message: str, *args, extra_secrets: Optional[Iterable[str]] = None, **kwargs):
    """Central logging helper that sanitizes sensitive details before output."""
    logger = current_app.logger
    sanitized_message = _sanitize_for_logging(message, extra_secrets)
    sanitized_args = tuple(
        _sanitize_for_logging(arg, extra_secrets) if isinstance(arg, str) else arg
        for arg in args
    )
    log_method = getattr(logger, level, None)
    if log_method is None:
        raise AttributeError(f"Logger has no level '{level}'")
    return log_method(sanitized_message, *sanitized_args, **kwargs)


# ---------------------------------------------------------------------------
# Tab registry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SettingsTab:
    id: str
    name: str
    form_class: Optional[Type[FlaskForm]] = None
    getter: Optional[str] = None
    updater: Optional[str] = None
    admin_only: bool = False
    attorney_allowed: bool = False
    template: str = 'settings/_form_tab.html'
    # Fields edited as one-item-per-line text but stored as lists
    line_list_fields: Tuple[str, ...] = ()
    comma_list_fields: Tuple[str, ...] = ()
    # Form fields grouped under a nested object in the payload
    nested: Dict[str, Tuple[str, ...]] = field(default_factory=dict)


SETTINGS_TABS: List[SettingsTab] = [
    SettingsTab('profile', 'Profile', ProfileSettingsForm, 'get_profile', 'update_profile'),
    SettingsTab('organization', 'Organization', OrganizationSettingsForm, 'get_organization',
                'update_organization', nested={'address': ('street', 'city', 'state', 'zip_code', 'country')}),
    SettingsTab('notifications', 'Notifications', NotificationSettingsForm, 'get_notifications',
                'update_notifications'),
    SettingsTab('security', 'Security', SecuritySettingsForm, 'get_security', 'update_security',
                template='settings/security.html'),
    SettingsTab('email', 'Email', EmailSettingsForm, 'get_email_settings', 'update_email_settings'),
    SettingsTab('integrations', 'Integrations', IntegrationSettingsForm, 'get_integrations', 'update_integrations'),
    SettingsTab('billing', 'Billing', BillingSettingsForm, 'get_billing', 'update_billing'),
    SettingsTab('users', 'Users', UserManagementSettingsForm, None, 'update_users', attorney_allowed=True),
    SettingsTab('cases', 'Cases', CaseSettingsForm, 'get_case_settings', 'update_case_settings',
                attorney_allowed=True),
    SettingsTab('forms', 'Forms', FormTemplateSettingsForm, 'get_form_templates', 'update_form_templates',
                attorney_allowed=True),
    SettingsTab('reports', 'Reports', ReportSettingsForm, 'get_report_settings', 'update_report_settings',
                attorney_allowed=True, template='settings/reports.html', line_list_fields=('recipients',)),
    SettingsTab('roles', 'Roles & Permissions', RoleForm, admin_only=True, template='settings/roles.html'),
    SettingsTab('database', 'Database', DatabaseSettingsForm, 'get_database_settings', 'update_database_settings',
                admin_only=True, template='settings/database.html'),
    SettingsTab('system', 'System', SystemSettingsForm, 'get_system_settings', 'update_system_settings',
                admin_only=True),
    SettingsTab('audit', 'Audit Logs', None, 'get_audit_logs', None, admin_only=True,
                template='settings/audit.html'),
    SettingsTab('backup', 'Backup', BackupSettingsForm, 'get_backup_settings', 'update_backup_settings',
                admin_only=True),
    SettingsTab('api', 'API', ApiSettingsForm, 'get_api_settings', 'update_api_settings', admin_only=True,
                template='settings/api.html', line_list_fields=('cors_origins',),
                comma_list_fields=('webhook_events',)),
    SettingsTab('performance', 'Performance', PerformanceSettingsForm, 'get_performance_settings',
                'update_performance_settings', admin_only=True),
]

TABS_BY_ID: Dict[str, SettingsTab] = {tab.id: tab for tab in SETTINGS_TABS}


def can_view_tab(user, tab: SettingsTab) -> bool:
    if getattr(user, 'is_admin', False):
        return True
    if getattr(user, 'role', None) == UserRole.ATTORNEY.value:
        return not tab.admin_only or tab.attorney_allowed
    return not tab.admin_only and not tab.attorney_allowed


def visible_tabs(user) -> List[SettingsTab]:
    return [tab for tab in SETTINGS_TABS if can_view_tab(user, tab)]


def admin_required(f):
    """
    Decorator to require admin privileges for route access
    Usage: @admin_required
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            flash('Please log in to access this page.', 'error')
            return redirect(url_for('auth.login', next=request.url))

        if not current_user.is_admin:
            flash('Access denied. Admin privileges required.', 'error')
            abort(403)

        return f(*args, **kwargs)
    return decorated_function


def tab_access_required(f):
    """Resolve ``tab_id`` to a SettingsTab the current user may see.

    Unknown tabs 404. Hidden tabs fall back to the profile tab, except for
    JSON polling which gets a 403.
    """
    @wraps(f)
    def decorated_function(tab_id, *args, **kwargs):
        tab = TABS_BY_ID.get(tab_id)
        if tab is None:
            abort(404)
        if not can_view_tab(current_user, tab):
            _log('warning', "User %s (role %s) denied settings tab %s", current_user.id, current_user.role, tab_id)
            if request.path.endswith('/poll'):
                abort(403)
            flash('You do not have access to that settings section.', 'error')
            return redirect(url_for('settings.tab_view', tab_id=DEFAULT_TAB))
        return f(tab, *args, **kwargs)
    return decorated_function


# ---------------------------------------------------------------------------
# Payload <-> form conversion
# ---------------------------------------------------------------------------

def snake_to_camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part[:1].upper() + part[1:] for part in rest)


def _editable_fields(form: FlaskForm) -> List[str]:
    return [f.name for f in form if f.type not in ('SubmitField', 'CSRFTokenField', 'HiddenField')]


def _lookup(data: Dict[str, Any], name: str) -> Any:
    camel = snake_to_camel(name)
    if camel in data:
        return data[camel]
    return data.get(name)


def populate_form(form: FlaskForm, tab: SettingsTab, data: Optional[Dict[str, Any]]) -> None:
    """Copy an API slice (camelCase keys) onto the form fields."""
    if not isinstance(data, dict):
        return
    nested_lookup = {}
    for group, names in tab.nested.items():
        group_data = data.get(group) or {}
        for name in names:
            nested_lookup[name] = group_data
    for name in _editable_fields(form):
        source = nested_lookup.get(name, data)
        value = _lookup(source, name)
        if value is None:
            continue
        if name in tab.line_list_fields and isinstance(value, list):
            value = '\n'.join(str(v) for v in value)
        elif name in tab.comma_list_fields and isinstance(value, list):
            value = ', '.join(str(v) for v in value)
        getattr(form, name).data = value


def form_to_payload(form: FlaskForm, tab: SettingsTab) -> Dict[str, Any]:
    """Build the camelCase PUT body from a validated form."""
    payload: Dict[str, Any] = {}
    nested_names = {name: group for group, names in tab.nested.items() for name in names}
    for name in _editable_fields(form):
        field_obj = getattr(form, name)
        value = field_obj.data
        # Stored secrets are never rendered back, so a blank password means "keep"
        if field_obj.type == 'PasswordField' and not value:
            continue
        if name in tab.line_list_fields:
            value = [line.strip() for line in (value or '').splitlines() if line.strip()]
        elif name in tab.comma_list_fields:
            value = [part.strip() for part in (value or '').split(',') if part.strip()]
        elif isinstance(value, str):
            value = value.strip()
        group = nested_names.get(name)
        if group:
            payload.setdefault(group, {})[snake_to_camel(name)] = value
        else:
            payload[snake_to_camel(name)] = value
    return payload


# ---------------------------------------------------------------------------
# Loading and caching slices
# ---------------------------------------------------------------------------

def _cache_key(tab: SettingsTab) -> str:
    return f"{current_user.id}:{tab.id}"


def fetch_slice(tab: SettingsTab) -> ApiResponse:
    """GET the tab's slice and refresh the cache. Skipped sections are cached as None."""
    service = get_settings_service()
    if not tab.getter:
        response = ApiResponse(data=None, status=0, status_text='Method skipped')
    else:
        response = getattr(service, tab.getter)(current_user.id)
    settings_cache.set(_cache_key(tab), response.data, ttl_seconds=CACHE_TTL_SECONDS)
    return response


def cached_slice(tab: SettingsTab) -> Tuple[Any, bool]:
    """Return ``(data, refreshed)``, re-fetching once the poll interval has passed."""
    interval = current_app.config.get('SETTINGS_POLL_INTERVAL', 30)
    age = settings_cache.age(_cache_key(tab))
    if age is None or age >= interval:
        return fetch_slice(tab).data, True
    return settings_cache.get(_cache_key(tab)), False


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------

def _render_tab(tab: SettingsTab, **context):
    return render_template(
        tab.template,
        title=f'Settings - {tab.name}',
        tabs=visible_tabs(current_user),
        active_tab=tab,
        poll_interval=current_app.config.get('SETTINGS_POLL_INTERVAL', 30),
        action_form=ItemActionForm(formdata=None),
        **context,
    )


@settings_bp.route('/')
@login_required
def index():
    return redirect(url_for('settings.tab_view', tab_id=DEFAULT_TAB))


@settings_bp.route('/<tab_id>', methods=['GET', 'POST'])
@login_required
@tab_access_required
def tab_view(tab):
    if tab.id == 'roles':
        return _roles_tab(tab)
    if tab.id == 'audit':
        return _audit_tab(tab)

    form = tab.form_class()
    load_error = None
    skipped = False

    if form.validate_on_submit():
        payload = form_to_payload(form, tab)
        _log('info', "Saving %s settings for %s: %s", tab.id, current_user.id, repr(payload))
        try:
            response = getattr(get_settings_service(), tab.updater)(current_user.id, payload)
        except ApiError as e:
            flash(e.message, 'error')
            return _render_tab(tab, form=form, load_error=None, skipped=False, data=payload)
        saved = response.data if isinstance(response.data, dict) else payload
        settings_cache.set(_cache_key(tab), saved, ttl_seconds=CACHE_TTL_SECONDS)
        flash('Settings saved successfully.', 'success')
        return redirect(url_for('settings.tab_view', tab_id=tab.id))

    data = None
    if request.method == 'GET':
        try:
            response = fetch_slice(tab)
            data = response.data
            skipped = response.skipped
        except ApiError as e:
            _log('error', "Failed to load %s settings: %s", tab.id, e.message)
            load_error = e.message
        populate_form(form, tab, data)

    extra = {}
    if tab.id == 'reports':
        reports = (data or {}).get('reports') if isinstance(data, dict) else None
        extra['reports'] = reports or []
    return _render_tab(tab, form=form, load_error=load_error, skipped=skipped, data=data, **extra)


@settings_bp.route('/<tab_id>/poll')
@login_required
@tab_access_required
def poll_tab(tab):
    """JSON snapshot of a tab's slice for background refresh."""
    try:
        data, refreshed = cached_slice(tab)
    except ApiError as e:
        return jsonify({'tab': tab.id, 'error': e.message}), 502
    return jsonify({
        'tab': tab.id,
        'data': data,
        'refreshed': refreshed,
        'age': settings_cache.age(_cache_key(tab)),
        'server_time': now_utc().isoformat(),
    })


# -- security -------------------------------------------------------------------

@settings_bp.route('/security/sign-out-all', methods=['POST'])
@login_required
def sign_out_all_devices():
    if ItemActionForm().validate_on_submit():
        try:
            get_settings_service().sign_out_all_devices(current_user.id)
            flash('Signed out of all other devices.', 'success')
        except ApiError as e:
            flash(e.message, 'error')
    return redirect(url_for('settings.tab_view', tab_id='security'))


# -- database maintenance -------------------------------------------------------------

@settings_bp.route('/database/<action>', methods=['POST'])
@login_required
@admin_required
def database_action(action):
    service = get_settings_service()
    actions = {
        'vacuum': (service.vacuum_database, 'Database vacuum started.'),
        'analyze': (service.analyze_database, 'Database analysis started.'),
    }
    if action not in actions:
        abort(404)
    if ItemActionForm().validate_on_submit():
        method, message = actions[action]
        try:
            method(current_user.id)
            _log('info', "Database %s triggered by %s", action, current_user.id)
            flash(message, 'success')
        except ApiError as e:
            flash(e.message, 'error')
    return redirect(url_for('settings.tab_view', tab_id='database'))


@settings_bp.route('/database/export')
@login_required
@admin_required
def export_schema():
    try:
        response = get_settings_service().export_database_schema(current_user.id)
    except ApiError as e:
        flash(e.message, 'error')
        return redirect(url_for('settings.tab_view', tab_id='database'))
    filename = f"schema_{now_utc().strftime('%Y%m%d_%H%M%S')}.sql"
    return Response(
        response.data or b'',
        mimetype='application/sql',
        headers={'Content-Disposition': f'attachment; filename={filename}'},
    )


# -- API keys -------------------------------------------------------------------------

@settings_bp.route('/api/regenerate-keys', methods=['POST'])
@login_required
@admin_required
def regenerate_api_keys():
    if ItemActionForm().validate_on_submit():
        try:
            get_settings_service().regenerate_api_keys(current_user.id)
            _log('info', "API keys regenerated by %s", current_user.id)
            flash('API keys regenerated.', 'success')
        except ApiError as e:
            flash(e.message, 'error')
    return redirect(url_for('settings.tab_view', tab_id='api'))


# -- reports --------------------------------------------------------------------------

@settings_bp.route('/reports/<report_id>/delete', methods=['GET', 'POST'])
@login_required
def delete_report(report_id):
    if not can_view_tab(current_user, TABS_BY_ID['reports']):
        abort(403)
    form = ConfirmDeleteForm()
    if form.validate_on_submit():
        try:
            get_settings_service().delete_report_settings(current_user.id, report_id)
            settings_cache.delete(f"{current_user.id}:reports")
            flash('Report settings deleted.', 'success')
        except ApiError as e:
            flash(e.message, 'error')
        return redirect(url_for('settings.tab_view', tab_id='reports'))
    return render_template(
        'settings/confirm_delete.html',
        title='Confirm Delete',
        form=form,
        item_label='this report setting',
        cancel_url=url_for('settings.tab_view', tab_id='reports'),
    )


# -- roles ----------------------------------------------------------------------------

PERMISSION_MODULES = [m.value for m in PermissionModule]
PERMISSION_ACTIONS = [a.value for a in PermissionAction]


def _roles_tab(tab: SettingsTab):
    service = get_role_service()
    form = RoleForm()
    if form.validate_on_submit():
        role = Role(
            id='',
            name=form.name.data.strip(),
            type=form.type.data,
            description=(form.description.data or '').strip(),
            is_default=bool(form.is_default.data),
        )
        try:
            service.create_role(role)
            flash(f'Role "{role.name}" created.', 'success')
            return redirect(url_for('settings.tab_view', tab_id='roles'))
        except ApiError as e:
            flash(e.message, 'error')

    roles: List[Role] = []
    load_error = None
    try:
        roles = service.get_roles()
    except ApiError as e:
        load_error = e.message
    return _render_tab(
        tab,
        form=form,
        roles=roles,
        load_error=load_error,
        modules=PERMISSION_MODULES,
        actions=PERMISSION_ACTIONS,
    )


def permissions_from_form(form_data) -> List[Permission]:
    """Read ``perm-<MODULE>-<ACTION>`` checkboxes into Permission objects."""
    permissions = []
    for module in PERMISSION_MODULES:
        actions = [a for a in PERMISSION_ACTIONS if form_data.get(f'perm-{module}-{a}')]
        if actions:
            permissions.append(Permission(module=module, actions=actions))
    return permissions


@settings_bp.route('/roles/<role_id>/permissions', methods=['POST'])
@login_required
@admin_required
def update_role_permissions(role_id):
    if ItemActionForm().validate_on_submit():
        permissions = permissions_from_form(request.form)
        try:
            get_role_service().update_permissions(role_id, [p.to_api() for p in permissions])
            flash('Permissions updated.', 'success')
        except ApiError as e:
            flash(e.message, 'error')
    return redirect(url_for('settings.tab_view', tab_id='roles'))


@settings_bp.route('/roles/<role_id>/delete', methods=['GET', 'POST'])
@login_required
@admin_required
def delete_role(role_id):
    form = ConfirmDeleteForm()
    if form.validate_on_submit():
        try:
            get_role_service().delete_role(role_id)
            flash('Role deleted.', 'success')
        except ApiError as e:
            flash(e.message, 'error')
        return redirect(url_for('settings.tab_view', tab_id='roles'))
    return render_template(
        'settings/confirm_delete.html',
        title='Confirm Delete',
        form=form,
        item_label='this role',
        cancel_url=url_for('settings.tab_view', tab_id='roles'),
    )


# -- audit logs -----------------------------------------------------------------------

def _audit_tab(tab: SettingsTab):
    entries = []
    load_error = None
    skipped = False
    try:
        response = fetch_slice(tab)
        skipped = response.skipped
        rows = response.data or []
        if isinstance(rows, dict):
            rows = rows.get('logs') or []
        for row in rows:
            if not isinstance(row, dict):
                continue
            entries.append({
                'timestamp': parse_api_datetime(row.get('timestamp') or row.get('createdAt')),
                'user': row.get('userEmail') or row.get('user') or '',
                'action': row.get('action') or '',
                'details': _sanitize_for_logging(str(row.get('details') or '')),
                'ip_address': row.get('ipAddress') or '',
            })
    except ApiError as e:
        load_error = e.message
    return _render_tab(tab, entries=entries, load_error=load_error, skipped=skipped)
