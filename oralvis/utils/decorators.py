from functools import wraps
import logging

from flask import g
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity
from flask_jwt_extended.exceptions import JWTExtendedException, NoAuthorizationError
from jwt.exceptions import PyJWTError

from oralvis.errors import Unauthenticated, Forbidden
from oralvis.extensions import db
from oralvis.models import User

logger = logging.getLogger(__name__)


def get_current_user():
    """User attached by @auth_required, or None"""
    return g.get('current_user')


def load_request_user():
    """
    Verify the request's token and resolve its subject to a User.

    The token is read from the `token` cookie first, then from
    `Authorization: Bearer <token>`. Missing, malformed, expired and
    orphaned tokens all raise Unauthenticated.
    """
    try:
        verify_jwt_in_request(locations=['cookies', 'headers'])
    except (JWTExtendedException, PyJWTError) as e:
        if isinstance(e, NoAuthorizationError):
            raise Unauthenticated('Access denied. No token provided.') from e
        raise Unauthenticated('Invalid token.') from e

    try:
        user_id = int(get_jwt_identity())
    except (TypeError, ValueError) as e:
        raise Unauthenticated('Invalid token.') from e

    user = db.session.get(User, user_id)
    if user is None:
        logger.info(f"Token subject {user_id} no longer exists")
        raise Unauthenticated('Invalid token.')

    g.current_user = user
    return user


def auth_required(f):
    """
    Decorator that authenticates the request and attaches the User to `g`.
    Usage: @auth_required
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        load_request_user()
        return f(*args, **kwargs)
    return decorated_function


def require_role(*roles):
    """
    Decorator to require specific roles
    Usage: @require_role('admin')
    Must be stacked below @auth_required on the route.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = get_current_user()
            if user is None:
                raise Unauthenticated('Authentication required.')
            if user.role not in roles:
                raise Forbidden('Access denied. Insufficient permissions.')
            return f(*args, **kwargs)
        return decorated_function
    return decorator
