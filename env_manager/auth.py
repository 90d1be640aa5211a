import hmac
import logging
from functools import wraps
from flask import request, session, redirect, url_for, render_template, Blueprint, current_app

from env_manager import config
from env_manager.errors import AuthenticationError

auth_bp = Blueprint('auth', __name__)
logger = logging.getLogger(__name__)

SESSION_TOKEN_KEY = 'sid'


def check_fixed_credentials(username, password):
    """Default credential check against the configured username/password pair."""
    if not isinstance(username, str) or not isinstance(password, str):
        return False
    username_ok = hmac.compare_digest(username.encode(), config.LOGIN_USERNAME.encode())
    password_ok = hmac.compare_digest(password.encode(), config.LOGIN_PASSWORD.encode())
    return username_ok and password_ok


def init_auth(app, session_store, credential_check=check_fixed_credentials):
    app.extensions['session_store'] = session_store
    app.extensions['credential_check'] = credential_check


def get_session_store():
    return current_app.extensions['session_store']


def authenticate(username, password):
    """Mark the current client as logged in, or raise AuthenticationError."""
    if not current_app.extensions['credential_check'](username, password):
        raise AuthenticationError("Invalid credentials")
    store = get_session_store()
    store.cleanup_expired_sessions()
    session.clear()
    session.permanent = True
    session[SESSION_TOKEN_KEY] = store.create_session()


def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not get_session_store().is_authenticated(session.get(SESSION_TOKEN_KEY)):
            return redirect(url_for('auth.login'))
        return f(*args, **kwargs)
    return decorated_function


def _login_form():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = request.form
    return data.get('username'), data.get('password')


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'POST':
        username, password = _login_form()
        try:
            authenticate(username, password)
        except AuthenticationError:
            logger.warning(f"Rejected login attempt for user {username!r}")
            return redirect(url_for('auth.login', error=1))
        logger.info(f"User {username!r} logged in")
        return redirect(url_for('dashboard'))
    return render_template('login.html', error=request.args.get('error'))


@auth_bp.route('/logout')
def logout():
    get_session_store().remove_session(session.get(SESSION_TOKEN_KEY))
    session.clear()
    return redirect(url_for('auth.login'))
