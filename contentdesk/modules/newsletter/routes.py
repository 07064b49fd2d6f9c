"""
Newsletter Routes
=================

Subscriber management, bulk actions, CSV export, stats and campaign sending.
POST /api/newsletter is the public subscribe endpoint; everything else is
staff-only.
"""

from flask import current_app, request

from . import newsletter_bp
from .campaigns import CampaignDispatcher, read_campaign_html, resolve_audience_ids
from .models import (
    SubscriberRepository, EXPORT_HEADERS, STATUSES,
    export_rows, prepare_subscriber, run_bulk_action,
)
from ..auth import auth_required
from ...core.documents import check_choice
from ...core.errors import NotFoundError, ValidationError
from ...core.logging_service import db_log
from ...core.resource import (
    csv_response, get_database, get_email_service, handle_errors,
    parse_pagination, render_csv, request_data, request_metadata, success,
)


def _subscribers():
    return SubscriberRepository(get_database())


@newsletter_bp.route('', methods=['GET'])
@auth_required()
@handle_errors('Failed to fetch newsletters')
def get_subscribers():
    subscribers = _subscribers()
    page, limit = parse_pagination(request.args)
    items, pagination = subscribers.list(
        subscribers.filters_from_args(request.args), request.args.get('search'), page, limit
    )
    return success({'items': items, 'pagination': pagination})


@newsletter_bp.route('/stats', methods=['GET'])
@auth_required()
@handle_errors('Failed to fetch newsletter statistics')
def get_stats():
    return success(_subscribers().stats())


@newsletter_bp.route('/export', methods=['GET'])
@auth_required()
@handle_errors('Failed to export newsletters')
def export_subscribers():
    subscribers = _subscribers()
    docs = subscribers.find_all(
        subscribers.filters_from_args(request.args), request.args.get('search')
    )
    if request.args.get('format', 'csv') == 'json':
        return success({'items': docs})
    return csv_response(render_csv(EXPORT_HEADERS, export_rows(docs)), 'newsletter')


@newsletter_bp.route('/<int:subscriber_id>', methods=['GET'])
@auth_required()
@handle_errors('Failed to fetch newsletter')
def get_subscriber(subscriber_id):
    return success({'subscriber': _subscribers().get_or_404(subscriber_id)})


@newsletter_bp.route('', methods=['POST'])
@handle_errors('Failed to subscribe to newsletter')
def subscribe():
    """Public subscribe endpoint"""
    subscribers = _subscribers()
    doc = prepare_subscriber(request_data(), subscribers, metadata=request_metadata())
    subscriber = subscribers.get(subscribers.insert(doc))
    db_log('info', 'newsletter', 'New subscriber', {'email': subscriber['email'], 'source': subscriber['source']})
    return success({'subscriber': subscriber}, 'Successfully subscribed to newsletter', 201)


@newsletter_bp.route('/<int:subscriber_id>', methods=['PUT'])
@auth_required()
@handle_errors('Failed to update newsletter subscription')
def update_subscriber(subscriber_id):
    subscribers = _subscribers()
    existing = subscribers.get_or_404(subscriber_id)
    changes = prepare_subscriber(request_data(), subscribers, existing)
    if changes:
        subscribers.update(subscriber_id, changes)
    return success(
        {'subscriber': subscribers.get(subscriber_id)},
        'Newsletter subscription updated successfully',
    )


@newsletter_bp.route('/<int:subscriber_id>', methods=['DELETE'])
@auth_required()
@handle_errors('Failed to delete newsletter subscription')
def delete_subscriber(subscriber_id):
    if not _subscribers().delete(subscriber_id):
        raise NotFoundError('Newsletter subscription not found')
    return success(message='Newsletter subscription deleted successfully')


@newsletter_bp.route('/bulk', methods=['POST'])
@auth_required()
@handle_errors('Failed to perform bulk action')
def bulk_action():
    data = request_data()
    action = data.get('action')
    result = run_bulk_action(_subscribers(), action, data.get('emails'), data.get('data'))
    db_log('info', 'newsletter', f"Bulk {action}", result)
    return success({'result': result}, f"Bulk {action} completed successfully")


@newsletter_bp.route('/send-campaign', methods=['POST'])
@auth_required()
@handle_errors('Failed to send email campaign')
def send_campaign():
    data = request_data()
    subject = (data.get('subject') or '').strip()
    if not subject:
        raise ValidationError('Subject is required for email campaign', field='subject')

    html_content = read_campaign_html(request.files.get('html_file'), data.get('html_content'))

    status = data.get('status') or 'active'
    if status != 'all':
        check_choice(status, STATUSES, 'status')
    ids = resolve_audience_ids(data.get('selected_subscribers', 'all'), data.get('selected_ids'))

    audience = _subscribers().audience(status=status, ids=ids)
    if not audience:
        raise NotFoundError('No subscribers found matching the criteria')

    dispatcher = CampaignDispatcher(
        get_email_service(),
        delay=current_app.config.get('CAMPAIGN_SEND_DELAY', 0.1),
        max_duration=current_app.config.get('CAMPAIGN_MAX_DURATION'),
    )
    report = dispatcher.dispatch(audience, subject, html_content)

    db_log('info', 'newsletter', f"Campaign sent: {subject}", {
        'total': report['total_subscribers'],
        'successful': report['successful_sends'],
        'failed': report['failed_sends'],
        'skipped': len(report['skipped']),
    })
    return success(report, f"Email campaign sent to {report['successful_sends']} subscribers")
