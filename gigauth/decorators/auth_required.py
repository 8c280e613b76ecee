"""View decorators that authenticate the caller."""

from functools import wraps
from flask import current_app, g, request

from gigauth.errors import NotAdminError, TokenMissingError
from gigauth.services.api_token_service import looks_like_api_token
from gigauth.services.container import container

AUTH_COOKIE_NAME = 'auth_token'


def get_request_token():
    """Bearer token from the Authorization header, else the auth cookie."""
    header = request.headers.get('Authorization', '')
    if header:
        scheme, _, value = header.partition(' ')
        if scheme.lower() == 'bearer' and value.strip():
            return value.strip()
    return request.cookies.get(AUTH_COOKIE_NAME) or None


def _authenticate(lenient=False, grace=None):
    token = get_request_token()
    if not token:
        raise TokenMissingError()

    if looks_like_api_token(token):
        user, api_token = container().get('api_token_service').validate(token)
        g.api_token = api_token
    elif lenient:
        if grace is None:
            grace = current_app.config['JWT_REFRESH_GRACE_PERIOD']
        user = container().get('session_token_service').verify_lenient(token, grace)
        g.api_token = None
    else:
        user = container().get('session_token_service').verify(token)
        g.api_token = None

    g.user = user
    return user


def token_required(f):
    """Require a valid session token or API token."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        _authenticate()
        return f(*args, **kwargs)
    return decorated_function


def lenient_token_required(grace=None):
    """Like ``token_required`` but accept session tokens expired within ``grace``.

    Meant for the token refresh endpoint. ``grace`` defaults to
    ``JWT_REFRESH_GRACE_PERIOD``.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            _authenticate(lenient=True, grace=grace)
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required(f):
    """Require an authenticated admin user."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = _authenticate()
        if not user.is_admin:
            raise NotAdminError()
        return f(*args, **kwargs)
    return decorated_function
