"""
Template context processors and filters.
"""

from flask import current_app
from flask_login import current_user

from .domain.intake import status_color
from .utils.formatting import format_datetime, format_file_size


def inject_csrf_token():
    """Make CSRF token available in all templates."""
    from flask_wtf.csrf import generate_csrf
    return dict(csrf_token=generate_csrf)


def inject_site_config():
    """Make site configuration available in all templates."""
    return dict(
        site_name=current_app.config.get('SITE_NAME', 'eFile Legal'),
        server_timezone=current_app.config.get('TIMEZONE', 'UTC'),
    )


def inject_user_role():
    """Expose role flags so layouts can hide admin-only navigation."""
    if not current_user.is_authenticated:
        return dict(is_admin=False, is_attorney=False)
    return dict(is_admin=current_user.is_admin, is_attorney=current_user.is_attorney)


def _localtime_filter(value, fmt='%b %d, %Y %H:%M'):
    return format_datetime(value, current_app.config.get('TIMEZONE', 'UTC'), fmt)


def register_template_helpers(app):
    app.context_processor(inject_csrf_token)
    app.context_processor(inject_site_config)
    app.context_processor(inject_user_role)
    app.add_template_filter(format_file_size, 'file_size')
    app.add_template_filter(_localtime_filter, 'localtime')
    app.add_template_filter(status_color, 'status_color')
