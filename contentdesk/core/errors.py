"""
Error taxonomy and app-level error handlers.

Models and repositories raise these; routes convert them into the JSON
failure envelope through ``handle_errors`` in ``core.resource``.
"""

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ContentDeskError(Exception):
    """Base class for errors that map onto an HTTP failure envelope"""
    status_code = 500

    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(ContentDeskError):
    status_code = 400


class ConflictError(ContentDeskError):
    """Duplicate value on a unique key (email, slug, name)"""
    status_code = 400


class NotFoundError(ContentDeskError):
    status_code = 404


class UnknownActionError(ContentDeskError):
    status_code = 400


class EmailDeliveryError(ContentDeskError):
    status_code = 502


def error_envelope(message, status_code, error=None, field=None):
    body = {'success': False, 'message': message}
    if error:
        body['error'] = error
    if field:
        body['field'] = field
    return jsonify(body), status_code


def register_error_handlers(app):
    @app.errorhandler(ContentDeskError)
    def handle_contentdesk_error(error):
        return error_envelope(error.message, error.status_code, field=error.field)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        messages = {
            404: 'Route not found',
            405: 'Method not allowed',
            413: 'Uploaded payload is too large',
        }
        return error_envelope(messages.get(error.code, error.name), error.code)

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        logger.exception(f"Unhandled error: {error}")
        return error_envelope('Something went wrong!', 500)
