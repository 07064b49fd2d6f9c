from datetime import datetime, timezone

from ..auth.models import UserRepository
from ...core.documents import (
    clean_text, require, check_max_length, check_choice, normalize_email,
    parse_date, parse_id_list, parse_int,
)
from ...core.errors import UnknownActionError, ValidationError
from ...core.resource import Repository

STATUSES = ('unread', 'read', 'replied', 'archived')
PRIORITIES = ('low', 'medium', 'high')
SOURCES = ('contact', 'quote', 'support', 'general')
METADATA_FIELDS = ('ip', 'user_agent', 'referrer', 'country', 'city')

MAX_LENGTHS = {'name': 100, 'phone': 20, 'company': 100, 'subject': 200, 'message': 2000}

# action -> status it sets; assign and delete are handled separately
STATUS_ACTIONS = {'markRead': 'read', 'markUnread': 'unread', 'archive': 'archived'}
BULK_ACTIONS = ('markRead', 'markUnread', 'archive', 'assign', 'delete')

EXPORT_HEADERS = [
    'Name', 'Email', 'Phone', 'Company', 'Subject', 'Status', 'Priority',
    'Source', 'Created At', 'Assigned To', 'Reply',
]


def init_messages_db(database):
    database.execute_script([
        """
        CREATE TABLE IF NOT EXISTS messages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            phone TEXT NOT NULL DEFAULT '',
            company TEXT NOT NULL DEFAULT '',
            subject TEXT NOT NULL,
            message TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'unread',
            priority TEXT NOT NULL DEFAULT 'medium',
            source TEXT NOT NULL DEFAULT 'contact',
            submitted_at TEXT NOT NULL,
            metadata TEXT NOT NULL DEFAULT '{}',
            assigned_to INTEGER,
            reply TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_messages_status ON messages(status)",
        "CREATE INDEX IF NOT EXISTS idx_messages_created_at ON messages(created_at DESC)",
        "CREATE INDEX IF NOT EXISTS idx_messages_priority ON messages(priority)",
        "CREATE INDEX IF NOT EXISTS idx_messages_source ON messages(source)",
    ], name='messages')


class MessageRepository(Repository):
    table = 'messages'
    label = 'Message'
    json_columns = {'metadata': dict, 'reply': lambda: None}
    search_fields = ('name', 'email', 'subject', 'message')
    filter_params = {
        'status': 'status',
        'priority': 'priority',
        'source': 'source',
        'assigned_to': ('assigned_to', parse_int),
    }
    unique_messages = {'email': 'A message from this email already exists'}

    def populate(self, docs):
        user_ids = set()
        for doc in docs:
            user_ids.add(doc.get('assigned_to'))
            if doc.get('reply'):
                user_ids.add(doc['reply'].get('replied_by'))
        users = UserRepository(self.database).summaries(user_ids, fields=('id', 'name', 'email'))

        for doc in docs:
            doc['assigned_to'] = users.get(doc.get('assigned_to'))
            if doc.get('reply'):
                doc['reply'] = dict(doc['reply'], replied_by=users.get(doc['reply'].get('replied_by')))
        return docs

    def stats(self):
        by_status = self.count_by('status')
        by_priority = self.count_by('priority')
        by_source = self.count_by('source')
        return {
            'total': self.count(),
            'by_status': {status: by_status.get(status, 0) for status in STATUSES},
            'by_priority': {priority: by_priority.get(priority, 0) for priority in PRIORITIES},
            'by_source': {source: by_source.get(source, 0) for source in SOURCES},
            'recent': self.populate(self.recent(5)),
        }


def _check_user(database, user_id, field):
    if not UserRepository(database).existing_ids([user_id]):
        raise ValidationError('User not found', field=field)
    return user_id


def _clean_metadata(metadata):
    metadata = metadata if isinstance(metadata, dict) else {}
    return {field: metadata[field] for field in METADATA_FIELDS if metadata.get(field)}


def prepare_message(data, metadata=None):
    """Contact form submission -> new message row"""
    doc = {field: clean_text(data.get(field)) or '' for field in
           ('name', 'phone', 'company', 'subject', 'message')}
    require(doc, ('name', 'subject', 'message'))
    doc['email'] = normalize_email(data.get('email'))
    check_max_length(doc, MAX_LENGTHS)

    doc['source'] = check_choice(data.get('source') or 'contact', SOURCES, 'source')
    # triage fields are set by staff through the admin update
    doc['priority'] = 'medium'
    doc['status'] = 'unread'
    if data.get('submitted_at'):
        doc['submitted_at'] = parse_date(data['submitted_at'], 'submitted_at')
    else:
        doc['submitted_at'] = datetime.now(timezone.utc).isoformat()
    doc['metadata'] = {**(metadata or {}), **_clean_metadata(data.get('metadata'))}
    return doc


def prepare_message_update(data, database, user_id=None):
    """
    Admin update of status/priority/assignee. A reply with content records
    {content, replied_by, replied_at} and forces status to 'replied'.
    Returns (changes, reply_content or None).
    """
    changes = {}
    if data.get('status'):
        changes['status'] = check_choice(data['status'], STATUSES, 'status')
    if data.get('priority'):
        changes['priority'] = check_choice(data['priority'], PRIORITIES, 'priority')
    if data.get('assigned_to') not in (None, ''):
        changes['assigned_to'] = _check_user(
            database, parse_int(data['assigned_to'], 'assigned_to'), 'assigned_to'
        )

    reply = data.get('reply')
    reply_content = None
    if isinstance(reply, dict) and (reply.get('content') or '').strip():
        reply_content = reply['content'].strip()
        replied_by = parse_int(reply.get('replied_by'), 'replied_by', default=user_id)
        if replied_by is not None:
            _check_user(database, replied_by, 'replied_by')
        changes['reply'] = {
            'content': reply_content,
            'replied_by': replied_by,
            'replied_at': datetime.now(timezone.utc).isoformat(),
        }
        changes['status'] = 'replied'
    return changes, reply_content


def run_bulk_action(repository, action, ids, data=None):
    if action not in BULK_ACTIONS:
        raise UnknownActionError('Invalid bulk action')
    if not isinstance(ids, list) or not ids:
        raise ValidationError('Invalid bulk operation parameters', field='ids')
    ids = parse_id_list(ids, 'ids')
    data = data if isinstance(data, dict) else {}

    if action in STATUS_ACTIONS:
        affected = repository.update_many('id', ids, {'status': STATUS_ACTIONS[action]})
    elif action == 'assign':
        if data.get('assigned_to') in (None, ''):
            raise UnknownActionError('assigned_to is required for assign')
        user_id = _check_user(
            repository.database, parse_int(data['assigned_to'], 'assigned_to'), 'assigned_to'
        )
        affected = repository.update_many('id', ids, {'assigned_to': user_id})
    else:
        affected = repository.delete_many('id', ids)

    return {'action': action, 'matched': len(ids), 'affected': affected}


def export_rows(messages):
    for m in messages:
        yield [
            m['name'], m['email'], m['phone'], m['company'], m['subject'],
            m['status'], m['priority'], m['source'], m['created_at'],
            (m.get('assigned_to') or {}).get('name', ''),
            (m.get('reply') or {}).get('content', ''),
        ]
