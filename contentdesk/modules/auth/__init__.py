"""
Auth Module
===========

JWT authentication for the admin API.

Provides:
- Login and first-user / admin-only registration
- auth_required(*roles) route decorator
- User accounts with werkzeug password hashing
"""

from flask import Blueprint

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

from . import routes
from .models import init_auth_db
from .utils import auth_required, configure_jwt

__all__ = ['auth_bp', 'auth_required', 'configure_jwt', 'init_auth_db']
