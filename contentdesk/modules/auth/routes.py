"""
Auth Routes
===========

Token login, staff registration and the current user's profile.
Registration is open until the first account exists; after that only an
admin can add users.
"""

from datetime import datetime, timezone

from flask import g
from flask_jwt_extended import verify_jwt_in_request, get_jwt

from . import auth_bp
from .models import UserRepository, prepare_user, public_user
from .utils import auth_required, issue_token
from ...core.errors import NotFoundError, ValidationError, error_envelope
from ...core.logging_service import db_log
from ...core.resource import get_database, handle_errors, request_data, success


@auth_bp.route('/register', methods=['POST'])
def register():
    users = UserRepository(get_database())
    is_first_user = users.count() == 0

    if not is_first_user:
        verify_jwt_in_request()
        if get_jwt().get('role') != 'admin':
            return error_envelope('Only an admin can register new users', 403)

    return _create_user(users, is_first_user)


@handle_errors('Failed to register user')
def _create_user(users, is_first_user):
    doc = prepare_user(request_data(), is_first_user)
    user = users.get(users.insert(doc))
    db_log('info', 'auth', f"User registered: {user['email']}", {'role': user['role']})
    return success({'user': public_user(user), 'token': issue_token(user)},
                   'User registered successfully', 201)


@auth_bp.route('/login', methods=['POST'])
@handle_errors('Login failed')
def login():
    data = request_data()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password')

    if not email or not password:
        raise ValidationError('Email and password required')

    users = UserRepository(get_database())
    user = users.get_by_email(email)
    if not users.verify_password(user, password):
        db_log('warning', 'auth', 'Failed login attempt', {'email': email})
        return error_envelope('Invalid credentials', 401)

    users.update(user['id'], {'last_login': datetime.now(timezone.utc).isoformat()})
    db_log('info', 'auth', f"User logged in: {email}", user_id=user['id'])
    return success({'user': public_user(user), 'token': issue_token(user)}, 'Login successful')


@auth_bp.route('/profile', methods=['GET'])
@auth_required()
@handle_errors('Failed to fetch profile')
def profile():
    user = UserRepository(get_database()).get(g.user_id)
    if user is None:
        raise NotFoundError('User not found')
    return success({'user': public_user(user)})
