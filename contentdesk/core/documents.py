"""
Document preparation helpers.

Plain functions used by every module's prepare_* step: slug and excerpt
derivation, list normalization, field validation and timestamps. None of
them touch the database.
"""

import re
from datetime import datetime, date

from .errors import ValidationError

# Rejects consecutive dots, leading/trailing dots in local part
EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9_%+-]+(\.[a-zA-Z0-9_%+-]+)*@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)*\.[a-zA-Z]{2,}$')

_HTML_TAG = re.compile(r'<[^>]*>')

EXCERPT_LENGTH = 150


def slugify(text):
    """URL-safe slug: lowercase, [a-z0-9 -] only, hyphenated, trimmed"""
    slug = re.sub(r'[^a-z0-9\s-]', '', (text or '').lower())
    slug = re.sub(r'\s+', '-', slug)
    slug = re.sub(r'-+', '-', slug)
    return slug.strip('-')


def strip_html(html):
    return _HTML_TAG.sub('', html or '')


def derive_excerpt(content, length=EXCERPT_LENGTH):
    """First `length` characters of the text content, followed by '...'"""
    return strip_html(content)[:length].strip() + '...'


def parse_list(value):
    """Normalize an array or a comma-separated string into a trimmed,
    de-duplicated list that keeps first-seen order."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(',')
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        items = [value]

    result = []
    for item in items:
        if item is None:
            continue
        item = str(item).strip()
        if item and item not in result:
            result.append(item)
    return result


def parse_id_list(value, field):
    """parse_list for reference fields: every entry must be an integer id"""
    ids = []
    for item in parse_list(value):
        try:
            ref_id = int(item)
        except ValueError:
            raise ValidationError(f"Invalid id '{item}' in {field}", field=field)
        if ref_id not in ids:
            ids.append(ref_id)
    return ids


def parse_int(value, field, default=None):
    if value in (None, ''):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", field=field)


def parse_bool(value, field):
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('true', '1', 'yes', 'on'):
            return True
        if lowered in ('false', '0', 'no', 'off', ''):
            return False
    raise ValidationError(f"{field} must be true or false", field=field)


def parse_date(value, field):
    """Accept an ISO date or datetime string, store the ISO form"""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be an ISO date", field=field)
    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00')).isoformat()
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date", field=field)


def clean_text(value):
    if value is None:
        return None
    return str(value).strip()


def require(doc, fields, labels=None):
    """Raise ValidationError naming the first missing or non-text required field"""
    labels = labels or {}
    for field in fields:
        value = doc.get(field)
        label = labels.get(field, field.replace('_', ' ').capitalize())
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{label} is required", field=field)
        if not isinstance(value, str):
            raise ValidationError(f"{label} must be text", field=field)


def check_max_length(doc, limits, labels=None):
    labels = labels or {}
    for field, limit in limits.items():
        value = doc.get(field)
        if value is None:
            continue
        label = labels.get(field, field.replace('_', ' ').capitalize())
        if not isinstance(value, str):
            raise ValidationError(f"{label} must be text", field=field)
        if len(value) > limit:
            raise ValidationError(f"{label} cannot exceed {limit} characters", field=field)


def check_choice(value, choices, field):
    if value not in choices:
        raise ValidationError(
            f"{field} must be one of: {', '.join(choices)}", field=field
        )
    return value


def validate_email(email):
    """Validate email format"""
    if not email or len(email) > 255:
        return False
    return EMAIL_REGEX.match(email) is not None


def normalize_email(email, field='email'):
    if not isinstance(email, str) or not email.strip():
        raise ValidationError('Email is required', field=field)
    email = email.strip().lower()
    if not validate_email(email):
        raise ValidationError('Please enter a valid email address', field=field)
    return email
