"""
Routes package initialization.
Registers all blueprint modules for the eFile Legal application.
"""

import logging

from flask import Blueprint, redirect, render_template, url_for, session
from flask_login import current_user

logger = logging.getLogger(__name__)

from .company_routes import companies_bp

# Create a main blueprint that can be registered with the app
main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    """Dashboard for signed-in users, login page for everyone else."""
    if not current_user.is_authenticated:
        return redirect(url_for('auth.login'))

    from ..intake_wizard import WIZARD_SESSION_KEY, get_wizard
    wizard = get_wizard() if session.get(WIZARD_SESSION_KEY) else None
    return render_template('dashboard.html', title='Dashboard', wizard=wizard)


def register_blueprints(app):
    """Register all blueprints with the Flask application."""
    from ..auth import auth
    from ..intake_wizard import wizard_bp
    from ..settings_console import settings_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth, url_prefix='/auth')
    app.register_blueprint(wizard_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(companies_bp, url_prefix='/companies')

    logger.debug("All blueprints registered successfully")


__all__ = ['main_bp', 'companies_bp', 'register_blueprints']
