from werkzeug.security import generate_password_hash, check_password_hash

from ...core.documents import (
    clean_text, normalize_email, require, check_max_length, check_choice,
)
from ...core.errors import ValidationError
from ...core.resource import Repository

ROLES = ('admin', 'editor')


def init_auth_db(database):
    database.execute_script([
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'editor',
            last_login TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
    ], name='users')


def validate_password_strength(password):
    """Validate password meets security requirements"""
    if not isinstance(password, str) or len(password) < 8:
        return False

    has_upper = any(c.isupper() for c in password)
    has_lower = any(c.islower() for c in password)
    has_digit = any(c.isdigit() for c in password)

    return has_upper and has_lower and has_digit


class UserRepository(Repository):
    table = 'users'
    label = 'User'
    search_fields = ('name', 'email')
    unique_messages = {'email': 'A user with this email already exists'}

    def get_by_email(self, email):
        return self.find_one(email=email)

    def verify_password(self, user, password):
        return bool(user) and check_password_hash(user['password_hash'], password or '')


def public_user(user):
    """User document without the password hash"""
    if user is None:
        return None
    return {key: value for key, value in user.items() if key != 'password_hash'}


def prepare_user(data, is_first_user):
    require(data, ('name', 'email', 'password'))
    doc = {
        'name': clean_text(data['name']),
        'email': normalize_email(data['email']),
    }
    check_max_length(doc, {'name': 100})

    if not validate_password_strength(data['password']):
        raise ValidationError(
            'Password must be at least 8 characters with upper and lower case letters and a digit',
            field='password',
        )
    doc['password_hash'] = generate_password_hash(data['password'])

    # First account owns the install
    if is_first_user:
        doc['role'] = 'admin'
    else:
        doc['role'] = check_choice(data.get('role') or 'editor', ROLES, 'role')
    return doc
