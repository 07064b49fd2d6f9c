"""
Messages Routes
===============

Contact form inbox. POST /api/messages is the public contact endpoint and
notifies the admin by email; replies recorded through PUT are mailed to the
sender. Email failures are logged and never fail the request.
"""

from flask import g, request

from . import messages_bp
from .models import (
    MessageRepository, EXPORT_HEADERS,
    export_rows, prepare_message, prepare_message_update, run_bulk_action,
)
from ..auth import auth_required
from ...core.logging_service import db_log
from ...core.resource import (
    csv_response, get_database, get_email_service, handle_errors,
    parse_pagination, render_csv, request_data, request_metadata, success,
)


def _messages():
    return MessageRepository(get_database())


@messages_bp.route('', methods=['GET'])
@auth_required()
@handle_errors('Failed to fetch messages')
def get_messages():
    messages = _messages()
    page, limit = parse_pagination(request.args)
    items, pagination = messages.list(
        messages.filters_from_args(request.args), request.args.get('search'), page, limit
    )
    return success({'items': items, 'pagination': pagination})


@messages_bp.route('/stats', methods=['GET'])
@auth_required()
@handle_errors('Failed to fetch message statistics')
def get_stats():
    return success(_messages().stats())


@messages_bp.route('/export', methods=['GET'])
@auth_required()
@handle_errors('Failed to export messages')
def export_messages():
    messages = _messages()
    docs = messages.populate(messages.find_all(
        messages.filters_from_args(request.args), request.args.get('search')
    ))
    if request.args.get('format', 'csv') == 'json':
        return success({'items': docs})
    return csv_response(render_csv(EXPORT_HEADERS, export_rows(docs)), 'messages')


@messages_bp.route('/<int:message_id>', methods=['GET'])
@auth_required()
@handle_errors('Failed to fetch message')
def get_message(message_id):
    messages = _messages()
    return success({'message': messages.populate_one(messages.get_or_404(message_id))})


@messages_bp.route('', methods=['POST'])
@handle_errors('Failed to send message')
def create_message():
    """Public contact form endpoint"""
    messages = _messages()
    doc = prepare_message(request_data(), request_metadata())
    message = messages.get(messages.insert(doc))
    db_log('info', 'messages', 'New contact message', {'id': message['id'], 'source': message['source']})

    try:
        get_email_service().send_admin_message_notification(message)
    except Exception as e:
        db_log('error', 'messages', 'Failed to send admin notification email', {'error': str(e)})

    return success({'message': messages.populate_one(message)}, 'Message sent successfully', 201)


@messages_bp.route('/<int:message_id>', methods=['PUT'])
@auth_required()
@handle_errors('Failed to update message')
def update_message(message_id):
    messages = _messages()
    message = messages.get_or_404(message_id)
    changes, reply_content = prepare_message_update(request_data(), messages.database, g.user_id)
    if changes:
        messages.update(message_id, changes)

    if reply_content:
        try:
            sent = get_email_service().send_reply_email(
                message['email'], message['name'], reply_content, message['subject']
            )
            db_log('info' if sent else 'warning', 'messages',
                   f"Reply email {'sent' if sent else 'not sent'} to {message['email']}",
                   user_id=g.user_id)
        except Exception as e:
            db_log('error', 'messages', 'Failed to send reply email', {'error': str(e)})

    return success({'message': messages.populate_one(messages.get(message_id))}, 'Message updated successfully')


@messages_bp.route('/<int:message_id>', methods=['DELETE'])
@auth_required()
@handle_errors('Failed to delete message')
def delete_message(message_id):
    messages = _messages()
    messages.get_or_404(message_id)
    messages.delete(message_id)
    return success(message='Message deleted successfully')


@messages_bp.route('/bulk', methods=['POST'])
@auth_required()
@handle_errors('Failed to perform bulk action')
def bulk_action():
    data = request_data()
    action = data.get('action')
    result = run_bulk_action(_messages(), action, data.get('ids'), data.get('data'))
    db_log('info', 'messages', f"Bulk {action}", result, user_id=g.user_id)
    return success({'result': result}, f"Bulk {action} completed successfully")
