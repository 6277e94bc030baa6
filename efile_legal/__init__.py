"""
Flask application factory for the eFile Legal case-management front end.

All persistent data lives behind the backend REST API; this application only
keeps the signed-in user, their API token and in-progress wizard state in the
server-side session.
"""

import os
import logging
from flask import Flask, session, request, jsonify, redirect, url_for, flash
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect, CSRFError
from flask_session import Session
from config import Config

logger = logging.getLogger(__name__)

login_manager = LoginManager()
csrf = CSRFProtect()
sess = Session()

USER_SESSION_KEY = 'auth_user'


@login_manager.user_loader
def load_user(user_id):
    """Rebuild the signed-in user from the session copy of the login payload."""
    from .domain.models import SessionUser
    stored = session.get(USER_SESSION_KEY)
    if not stored or str(stored.get('id')) != str(user_id):
        return None
    return SessionUser(**stored)


@login_manager.unauthorized_handler
def unauthorized():
    """Custom unauthorized handler that returns JSON for API and polling requests."""
    if request.path.startswith('/api/') or request.path.endswith('/poll') or request.is_json:
        return jsonify({
            'error': 'Authentication required',
            'message': 'Your session has expired. Please sign in again.',
        }), 401

    flash(login_manager.login_message, login_manager.login_message_category)
    return redirect(url_for('auth.login', next=request.full_path if request.query_string else request.path))


def _configure_logging(app):
    """Configure Python logging level from LOG_LEVEL (default ERROR)."""
    log_level_name = str(app.config.get('LOG_LEVEL') or os.getenv('LOG_LEVEL', 'ERROR')).upper()
    log_level = getattr(logging, log_level_name, logging.ERROR)
    if not logging.getLogger().handlers:
        logging.basicConfig(format='%(asctime)s %(levelname)s [%(name)s] %(message)s')
    logging.getLogger().setLevel(log_level)
    app.logger.setLevel(log_level)
    # urllib3 is chatty at DEBUG; keep it at INFO unless explicitly needed
    logging.getLogger('urllib3').setLevel(max(log_level, logging.INFO))


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    _configure_logging(app)

    # Must be set before Flask-Session initialization
    app.secret_key = app.config['SECRET_KEY']
    if not app.secret_key:
        raise RuntimeError("SECRET_KEY must be set in environment or config")

    os.makedirs(app.config['SESSION_FILE_DIR'], exist_ok=True)
    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)

    # Initialize extensions
    csrf.init_app(app)
    sess.init_app(app)
    login_manager.init_app(app)
    login_manager.login_view = 'auth.login'  # type: ignore
    login_manager.login_message = 'Please log in to access this page.'
    login_manager.login_message_category = 'info'

    from .template_context import register_template_helpers
    register_template_helpers(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        """Handle CSRF errors with user-friendly messages."""
        logger.warning("CSRF failure on %s: %s", request.path, e.description)
        if request.is_json or request.headers.get('X-Requested-With') == 'XMLHttpRequest':
            from flask_wtf.csrf import generate_csrf
            return jsonify({
                'error': 'CSRF token missing or invalid',
                'message': 'Please refresh the page and try again. Include X-CSRFToken header for API requests.',
                'csrf_token': generate_csrf()
            }), 400
        if request.endpoint and request.endpoint.startswith('wizard.'):
            flash('Security token expired. The page will be refreshed with a new token.', 'warning')
            return redirect(url_for('wizard.step'))
        flash('Security token expired. Please try again.', 'error')
        return redirect(request.referrer or url_for('main.index'))

    @app.errorhandler(403)
    def handle_forbidden(e):
        if request.is_json or request.path.endswith('/poll'):
            return jsonify({'error': 'Forbidden', 'message': 'You do not have access to this resource.'}), 403
        from flask import render_template
        return render_template('errors/403.html'), 403

    @app.errorhandler(404)
    def handle_not_found(e):
        if request.is_json or request.path.endswith('/poll'):
            return jsonify({'error': 'Not found'}), 404
        from flask import render_template
        return render_template('errors/404.html'), 404

    # Register blueprints
    from .routes import register_blueprints
    register_blueprints(app)

    app.logger.info("eFile Legal initialised against %s", app.config.get('API_BASE_URL'))
    return app
