from functools import wraps

from flask import g
from flask_jwt_extended import (
    JWTManager, create_access_token, get_jwt, get_jwt_identity, verify_jwt_in_request,
)

from ...core.errors import error_envelope

jwt = JWTManager()

STAFF_ROLES = ('admin', 'editor')


def configure_jwt(app):
    """Attach the JWT manager with envelope-shaped auth failures"""
    jwt.init_app(app)

    @jwt.unauthorized_loader
    def missing_token(reason):
        return error_envelope('Access denied. No token provided.', 401, error=reason)

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return error_envelope('Invalid token', 401, error=reason)

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return error_envelope('Token has expired', 401)

    return jwt


def issue_token(user):
    return create_access_token(
        identity=str(user['id']),
        additional_claims={'role': user['role'], 'email': user['email']},
    )


def current_user_id():
    identity = get_jwt_identity()
    return int(identity) if identity is not None else None


def auth_required(*allowed_roles):
    """Require a bearer token whose role claim is in allowed_roles"""
    allowed_roles = allowed_roles or STAFF_ROLES

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            role = get_jwt().get('role')
            if role not in allowed_roles:
                return error_envelope('Insufficient permissions', 403)
            g.user_id = current_user_id()
            g.user_role = role
            return fn(*args, **kwargs)
        return wrapper
    return decorator
