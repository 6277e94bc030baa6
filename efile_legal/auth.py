import logging

from flask import Blueprint, render_template, redirect, url_for, flash, request, session
from flask_login import login_user, logout_user, login_required, current_user

from . import USER_SESSION_KEY
from .domain.models import SessionUser
from .forms import LoginForm
from .services import ApiError, get_api_client, TOKEN_SESSION_KEY
from .services.endpoints import AUTH_END_POINTS
from .utils.simple_cache import settings_cache

logger = logging.getLogger(__name__)

auth = Blueprint('auth', __name__)


def _safe_next(target):
    # Only allow relative redirects back into this app
    if target and target.startswith('/') and not target.startswith('//'):
        return target
    return None


@auth.route('/login', methods=['GET', 'POST'])
def login():
    if current_user.is_authenticated:
        return redirect(url_for('main.index'))

    form = LoginForm()
    if form.validate_on_submit():
        email = (form.email.data or '').strip().lower()
        client = get_api_client()
        try:
            body, _ = client.request('POST', AUTH_END_POINTS['LOGIN'],
                                     json={'email': email, 'password': form.password.data})
        except ApiError as e:
            logger.warning("Login failed for %s: %s", email, e.message)
            flash(e.message if e.status in (400, 401) else 'Unable to sign in right now. Please try again.', 'error')
            return render_template('auth/login.html', title='Sign In', form=form)

        payload = body.get('data') if isinstance(body, dict) and isinstance(body.get('data'), dict) else body
        if not isinstance(payload, dict) or not (payload.get('_id') or payload.get('id')):
            logger.error("Login response for %s did not include a user id", email)
            flash('Invalid email or password.', 'error')
            return render_template('auth/login.html', title='Sign In', form=form)

        user = SessionUser.from_api(payload)
        session.permanent = bool(form.remember_me.data)
        session[USER_SESSION_KEY] = user.to_session()
        session[TOKEN_SESSION_KEY] = user.token or client.token
        session.modified = True
        login_user(user, remember=form.remember_me.data)
        logger.info("User %s signed in with role %s", user.id, user.role)

        next_page = _safe_next(request.args.get('next'))
        return redirect(next_page or url_for('main.index'))

    return render_template('auth/login.html', title='Sign In', form=form)


@auth.route('/logout')
@login_required
def logout():
    user_id = current_user.get_id()
    logout_user()
    settings_cache.delete_prefix(f"{user_id}:")
    session.pop(USER_SESSION_KEY, None)
    session.pop(TOKEN_SESSION_KEY, None)
    session.pop('wizard', None)
    session.modified = True
    flash('You have been logged out.', 'info')
    return redirect(url_for('auth.login'))
