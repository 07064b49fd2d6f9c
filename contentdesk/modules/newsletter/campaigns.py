"""
Campaign Dispatcher
===================

Sends one HTML campaign to a resolved list of subscribers, strictly one
after another with a fixed delay between sends. A per-recipient failure is
recorded and the loop continues. An optional time budget or a
threading.Event stops the loop between sends; recipients not reached are
reported as skipped.
"""

import json
import logging
import time

from ...core.documents import parse_id_list, strip_html
from ...core.errors import UnknownActionError, ValidationError

logger = logging.getLogger(__name__)


class CampaignDispatcher:

    def __init__(self, email_service, delay=0.1, max_duration=None,
                 sleep=time.sleep, clock=time.monotonic):
        self.email_service = email_service
        self.delay = delay
        self.max_duration = max_duration
        self.sleep = sleep
        self.clock = clock

    def _should_stop(self, started, cancel_event):
        if cancel_event is not None and cancel_event.is_set():
            return True
        return self.max_duration is not None and self.clock() - started >= self.max_duration

    def dispatch(self, subscribers, subject, html_content, cancel_event=None):
        text_content = strip_html(html_content)
        results, errors, skipped = [], [], []
        started = self.clock()

        for index, subscriber in enumerate(subscribers):
            if index > 0 and self.delay:
                self.sleep(self.delay)

            if self._should_stop(started, cancel_event):
                skipped = [s['email'] for s in subscribers[index:]]
                logger.warning(f"Campaign stopped early, {len(skipped)} recipients skipped")
                break

            email = subscriber['email']
            try:
                message_id = self.email_service.deliver(
                    email, subject, html_content, text_content, email_type='campaign'
                )
                results.append({'email': email, 'success': True, 'id': message_id})
            except Exception as e:
                logger.error(f"Failed to send campaign email to {email}: {e}")
                errors.append({'email': email, 'error': getattr(e, 'message', str(e))})

        return {
            'total_subscribers': len(subscribers),
            'successful_sends': len(results),
            'failed_sends': len(errors),
            'results': results,
            'errors': errors,
            'skipped': skipped,
            'cancelled': bool(skipped),
        }


def read_campaign_html(html_file, html_content):
    """The uploaded file wins over inline content"""
    if html_file is not None and html_file.filename:
        filename = html_file.filename.lower()
        if html_file.mimetype != 'text/html' and not filename.endswith(('.html', '.htm')):
            raise ValidationError('Only HTML files are allowed', field='html_file')
        try:
            return html_file.read().decode('utf-8')
        except UnicodeDecodeError as e:
            raise ValidationError(f"Failed to read uploaded HTML file: {e}", field='html_file')
    if html_content and str(html_content).strip():
        return html_content
    raise ValidationError('Either HTML file upload or HTML content is required', field='html_content')


def resolve_audience_ids(selected_subscribers, selected_ids):
    """
    Map the audience selector to subscriber ids:
    'all' -> None (no id restriction), 'selected' -> ids from selected_ids
    (JSON array string or list), anything else -> comma-separated ids.
    """
    if not selected_subscribers or selected_subscribers == 'all':
        return None

    if selected_subscribers == 'selected':
        ids = selected_ids
        if isinstance(ids, str):
            try:
                ids = json.loads(ids) if ids.strip() else []
            except ValueError:
                raise ValidationError('Invalid selected IDs format', field='selected_ids')
        if ids is None:
            ids = []
        if not isinstance(ids, list):
            raise ValidationError('Invalid selected IDs format', field='selected_ids')
        ids = parse_id_list(ids, 'selected_ids')
        if not ids:
            raise UnknownActionError('No subscriber IDs provided for selected option')
        return ids

    return parse_id_list(selected_subscribers, 'selected_subscribers')
