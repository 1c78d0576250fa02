"""Optional session-cookie auth for the forest routes."""

import logging

from flask import current_app, session
from werkzeug.security import check_password_hash

from forest.errors import AuthError

logger = logging.getLogger(__name__)

AUTH_SESSION_KEY = 'authenticated'


def is_authenticated():
    return session.get(AUTH_SESSION_KEY) == 'true'


def require_auth():
    if not current_app.config['FOREST_REQUIRE_AUTH']:
        return
    if not is_authenticated():
        logger.info('Rejected unauthenticated forest request')
        raise AuthError()


def login(password):
    password_hash = current_app.config.get('FOREST_PASSWORD_HASH')
    if not (password_hash and isinstance(password, str) and password):
        raise AuthError('Invalid credentials')
    if not check_password_hash(password_hash, password):
        logger.info('Failed forest login attempt')
        raise AuthError('Invalid credentials')
    session[AUTH_SESSION_KEY] = 'true'


def logout():
    session.clear()
