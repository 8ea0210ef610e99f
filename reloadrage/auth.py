from functools import wraps

from flask import Blueprint, current_app, jsonify, redirect, render_template, request, session, url_for
from werkzeug.security import check_password_hash, generate_password_hash

from . import store
from .errors import InvalidCredentialsError, ReloadRageError, StoreError, ValidationError

auth_bp = Blueprint('auth', __name__)

MIN_PASSWORD_LENGTH = 6


def _check_input(username, password):
    if not username or not password:
        raise ValidationError('Username and password are required')
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters long')


def _start_session(sess, user_id, username):
    sess.clear()
    sess.permanent = True
    sess['user_id'] = user_id
    sess['username'] = username


def register(sess, username, password):
    """Create a user and log the session in as that user. Returns the new id."""
    username = (username or '').strip()
    password = password or ''
    _check_input(username, password)
    user_id = store.create_user(username, generate_password_hash(password))
    _start_session(sess, user_id, username)
    current_app.logger.info('Registered user %s (id=%s)', username, user_id)
    return user_id


def login(sess, username, password):
    username = (username or '').strip()
    password = password or ''
    _check_input(username, password)
    user = store.find_user_by_username(username)
    if user is None or not check_password_hash(user.password, password):
        raise InvalidCredentialsError()
    _start_session(sess, user.id, user.username)
    current_app.logger.info('User %s logged in', user.username)
    return user.id


def logout(sess):
    username = sess.get('username')
    try:
        sess.clear()
    except Exception:
        current_app.logger.exception('Logout error')
        return
    if username:
        current_app.logger.info('User %s logged out', username)


def is_logged_in():
    return bool(session.get('user_id'))


def _credentials():
    data = request.form if request.form else (request.get_json(silent=True) or {})
    return data.get('username'), data.get('password')


def _handle_form(template, action, failure_message):
    if is_logged_in():
        return redirect(url_for('index'))
    if request.method == 'GET':
        return render_template(template, error=None)
    username, password = _credentials()
    try:
        action(session, username, password)
    except StoreError:
        current_app.logger.exception('%s (username=%s)', failure_message, username)
        return render_template(template, error=failure_message, username=username)
    except ReloadRageError as e:
        return render_template(template, error=e.message, username=username)
    return redirect(url_for('index'))


@auth_bp.route('/register', methods=['GET', 'POST'])
def register_page():
    return _handle_form('register.html', register, 'Registration failed')


@auth_bp.route('/login', methods=['GET', 'POST'])
def login_page():
    return _handle_form('login.html', login, 'Login failed')


@auth_bp.route('/logout', methods=['POST'])
def logout_page():
    logout(session)
    return redirect(url_for('index'))


def login_required(view):
    """Decorator for API handlers that need an authenticated user."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not is_logged_in():
            return jsonify({'error': 'Not logged in'}), 401
        return view(*args, **kwargs)
    return wrapped
