"""Backend endpoint templates. ``:name`` placeholders are filled by ``expand_path``."""

AUTH_END_POINTS = {
    'LOGIN': '/api/users/login',
    'REGISTER': '/api/users/register',
}

CLIENT_END_POINTS = {
    'GETALLCLIENTSLIST': '/api/uscisclients/getAllClientsList',
    'ADDCLIENTCONTACT': '/api/uscisclients/addClientContact',
    'ADDCLIENTCASES': '/api/uscisclients/addClientCases',
}

IMMIGRATION_END_POINTS = {
    'CATEGORIES': '/api/v1/immigration/categories',
    'CATEGORY_FORMS': '/api/v1/immigration/categories/:categoryId/forms',
    'CATEGORY_REQUIREMENTS': '/api/v1/immigration/categories/:categoryId/requirements',
    'CATEGORY_FORM_TYPES': '/api/v1/immigration/categories/:categoryId/form-types',
    'FORM_TYPE_SELECT': '/api/v1/immigration/form-types/:typeId/select',
    'FORM_TYPE_SUBCATEGORIES': '/api/v1/immigration/form-types/:typeId/subcategories',
    'FORM_PROCESS': '/api/v1/immigration/forms/:formId/process',
}

DOCUMENT_END_POINTS = {
    'UPLOAD': '/api/v1/documents/upload',
}

COMPANY_END_POINTS = {
    'GETCOMPANIESLIST': '/api/v1/companies/user/:userId',
    'GETCOMPANYUSERS': '/api/v1/companies/:id/users',
    'GETCOMPANYBYID': '/api/v1/companies/:id',
}

SUBSCRIPTION_END_POINTS = {
    'GET_PLANS': '/api/v1/subscriptions/plans',
    'GET_PLAN_BY_ID': '/api/v1/subscriptions/plans/:id',
    'SUBSCRIBE': '/api/v1/subscriptions/subscribe',
    'CANCEL': '/api/v1/subscriptions/cancel',
    'GET_COMPANY_SUBSCRIPTION': '/api/v1/subscriptions/company/:companyId',
}

_SETTINGS_BASE = '/api/v1/settings/:userId'

SETTINGS_END_POINTS = {
    'PROFILE': f'{_SETTINGS_BASE}/profile',
    'ORGANIZATION': f'{_SETTINGS_BASE}/organization',
    'NOTIFICATIONS': f'{_SETTINGS_BASE}/notifications',
    'SECURITY': f'{_SETTINGS_BASE}/security',
    'SECURITY_SIGNOUT_ALL': f'{_SETTINGS_BASE}/security/signout-all',
    'EMAIL': f'{_SETTINGS_BASE}/email',
    'INTEGRATIONS': f'{_SETTINGS_BASE}/integrations',
    'BILLING': f'{_SETTINGS_BASE}/billing',
    'USERS': f'{_SETTINGS_BASE}/users',
    'CASE_SETTINGS': f'{_SETTINGS_BASE}/cases',
    'FORM_TEMPLATES': f'{_SETTINGS_BASE}/form-templates',
    'REPORT_SETTINGS': f'{_SETTINGS_BASE}/reports',
    'REPORT_SETTINGS_DELETE': f'{_SETTINGS_BASE}/reports/:reportId',
    'ROLES': f'{_SETTINGS_BASE}/roles',
    'DATABASE': f'{_SETTINGS_BASE}/database',
    'DATABASE_VACUUM': f'{_SETTINGS_BASE}/database/vacuum',
    'DATABASE_ANALYZE': f'{_SETTINGS_BASE}/database/analyze',
    'DATABASE_EXPORT': f'{_SETTINGS_BASE}/database/export',
    'SYSTEM': f'{_SETTINGS_BASE}/system',
    'AUDIT_LOGS': f'{_SETTINGS_BASE}/audit-logs',
    'BACKUP': f'{_SETTINGS_BASE}/backup',
    'API_SETTINGS': f'{_SETTINGS_BASE}/api',
    'API_KEYS_REGENERATE': f'{_SETTINGS_BASE}/api/regenerate-keys',
    'PERFORMANCE': f'{_SETTINGS_BASE}/performance',
}

ROLE_END_POINTS = {
    'ROLES': '/api/v1/roles',
    'ROLE_BY_ID': '/api/v1/roles/:roleId',
    'PERMISSIONS': '/api/v1/roles/:roleId/permissions',
}
