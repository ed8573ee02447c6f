from functools import wraps

import bcrypt
from flask import current_app, flash, redirect, request, session, url_for

ADMIN_ROLE = 'admin'
ADMIN_DISPLAY_NAME = 'Administrator'


def add_security_headers(response):
    """Add security headers to response"""
    # Content Security Policy; the receipt page prints itself with an inline script
    response.headers['Content-Security-Policy'] = (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline'; "
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data:; "
        "form-action 'self'"
    )

    response.headers['X-Frame-Options'] = 'SAMEORIGIN'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'same-origin'

    if any(response.mimetype.startswith(t) for t in ['text/css', 'application/javascript', 'image/']):
        response.headers['Cache-Control'] = 'public, max-age=31536000'
    else:
        response.headers['Cache-Control'] = 'no-store, no-cache, must-revalidate, max-age=0'

    return response


def _admin_password_hash(app):
    stored = app.config.get('ADMIN_PASSWORD_HASH')
    if stored:
        return stored.encode('utf-8')
    password = app.config.get('ADMIN_PASSWORD') or ''
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=app.config.get('BCRYPT_ROUNDS', 12)))


def init_security(app):
    """Initialize security features for the Flask app"""
    app.extensions['admin_password_hash'] = _admin_password_hash(app)
    app.after_request(add_security_headers)


def check_admin_password(password):
    if not password:
        return False
    hashed = current_app.extensions['admin_password_hash']
    return bcrypt.checkpw(password.encode('utf-8'), hashed)


def log_in_admin():
    session.clear()
    session['logged_in'] = True
    session['username'] = ADMIN_DISPLAY_NAME
    session['user_role'] = ADMIN_ROLE


def current_user():
    if not session.get('logged_in'):
        return None
    return {'name': session.get('username'), 'role': session.get('user_role')}


def is_admin():
    return session.get('logged_in', False) and session.get('user_role') == ADMIN_ROLE


def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'logged_in' not in session:
            return redirect(url_for('office.login', next=request.path))
        return f(*args, **kwargs)
    return decorated_function
