import json
from datetime import datetime, timezone

from ...core.documents import (
    clean_text, check_choice, normalize_email, parse_list, validate_email,
)
from ...core.errors import ConflictError, UnknownActionError, ValidationError
from ...core.resource import Repository, placeholders

STATUSES = ('active', 'unsubscribed', 'bounced')
SOURCES = ('website', 'admin', 'import')
METADATA_FIELDS = ('ip', 'user_agent', 'referrer')
BULK_ACTIONS = ('subscribe', 'unsubscribe', 'delete', 'update')

EXPORT_HEADERS = ['Email', 'Name', 'Status', 'Source', 'Subscribed At', 'Unsubscribed At', 'Tags']


def init_newsletter_db(database):
    database.execute_script([
        """
        CREATE TABLE IF NOT EXISTS newsletter_subscribers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL DEFAULT '',
            status TEXT NOT NULL DEFAULT 'active',
            source TEXT NOT NULL DEFAULT 'website',
            subscribed_at TEXT NOT NULL,
            unsubscribed_at TEXT,
            tags TEXT NOT NULL DEFAULT '[]',
            metadata TEXT NOT NULL DEFAULT '{}',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_subscribers_status ON newsletter_subscribers(status)",
        "CREATE INDEX IF NOT EXISTS idx_subscribers_subscribed_at ON newsletter_subscribers(subscribed_at DESC)",
        "CREATE INDEX IF NOT EXISTS idx_subscribers_source ON newsletter_subscribers(source)",
    ], name='newsletter_subscribers')


def _now():
    return datetime.now(timezone.utc).isoformat()


class SubscriberRepository(Repository):
    table = 'newsletter_subscribers'
    label = 'Newsletter subscription'
    json_columns = {'tags': list, 'metadata': dict}
    search_fields = ('email', 'name')
    filter_params = {'status': 'status', 'source': 'source'}
    order_by = 'subscribed_at DESC, id DESC'
    unique_messages = {'email': 'Email is already subscribed'}

    def get_by_email(self, email):
        return self.find_one(email=email)

    def email_taken(self, email, exclude_id=None):
        row = self.database.fetch_one(
            f"SELECT id FROM {self.table} WHERE email = ? AND id != ?",
            (email, exclude_id if exclude_id is not None else -1),
        )
        return row is not None

    def recent(self, limit=5, columns='*'):
        rows = self.database.fetch_all(
            f"SELECT {columns} FROM {self.table} ORDER BY {self.order_by} LIMIT ?", (limit,)
        )
        return [self.decode(row) for row in rows]

    def stats(self):
        by_status = self.count_by('status')
        by_source = self.count_by('source')
        return {
            'total': self.count(),
            'by_status': {status: by_status.get(status, 0) for status in STATUSES},
            'by_source': {source: by_source.get(source, 0) for source in SOURCES},
            'recent': self.recent(5),
        }

    def audience(self, status=None, ids=None):
        """Subscribers a campaign goes to, resolved in one query"""
        filters = {}
        if status and status != 'all':
            filters['status'] = status
        if ids is not None:
            filters['id'] = ids
        return self.find_all(filters)

    # --- bulk actions, one statement each ---

    def bulk_subscribe(self, emails, data):
        now = _now()
        rows = [
            (email, clean_text(data.get('name')) or '', data.get('source') or 'admin', 'active',
             now, json.dumps(parse_list(data.get('tags'))),
             json.dumps(_clean_metadata(data.get('metadata'))), now, now)
            for email in emails
        ]
        inserted = self.database.execute_many(
            f"""
            INSERT OR IGNORE INTO {self.table}
            (email, name, source, status, subscribed_at, tags, metadata, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            rows,
        )
        return {'inserted': inserted, 'skipped': len(emails) - inserted}

    def bulk_update(self, emails, changes):
        """Apply the same changes to every matched subscriber; a status move
        into 'unsubscribed' stamps unsubscribed_at on rows not already there."""
        row = self.encode(changes)
        now = _now()
        row['updated_at'] = now
        assignments = [f"{column} = ?" for column in row]
        params = list(row.values())
        if changes.get('status') == 'unsubscribed':
            assignments.append(
                "unsubscribed_at = CASE WHEN status != 'unsubscribed' THEN ? ELSE unsubscribed_at END"
            )
            params.append(now)
        updated, _ = self.database.execute(
            f"UPDATE {self.table} SET {', '.join(assignments)} WHERE email IN ({placeholders(emails)})",
            params + list(emails),
        )
        return {'affected': updated}

    def bulk_unsubscribe(self, emails):
        now = _now()
        updated, _ = self.database.execute(
            f"""
            UPDATE {self.table} SET status = 'unsubscribed', unsubscribed_at = ?, updated_at = ?
            WHERE email IN ({placeholders(emails)}) AND status != 'unsubscribed'
            """,
            [now, now] + list(emails),
        )
        return {'affected': updated}

    def bulk_delete(self, emails):
        return {'affected': self.delete_many('email', emails)}


def _clean_metadata(metadata):
    metadata = metadata if isinstance(metadata, dict) else {}
    return {field: metadata[field] for field in METADATA_FIELDS if metadata.get(field)}


def prepare_subscriber(data, repository, existing=None, metadata=None):
    """
    Normalize a subscriber body. On create the email must not exist yet
    and the status is always 'active'; on update the email must not belong
    to another subscription. A transition into 'unsubscribed' stamps
    unsubscribed_at.
    """
    creating = existing is None
    doc = {}

    if creating or data.get('email'):
        doc['email'] = normalize_email(data.get('email'))
        if creating and repository.get_by_email(doc['email']):
            raise ConflictError('Email is already subscribed', field='email')
        if not creating and repository.email_taken(doc['email'], existing['id']):
            raise ConflictError('Email already exists in another subscription', field='email')

    if 'name' in data or creating:
        doc['name'] = clean_text(data.get('name')) or ''
    if creating:
        doc['status'] = 'active'
    elif data.get('status'):
        doc['status'] = check_choice(data['status'], STATUSES, 'status')
    if data.get('source') or creating:
        doc['source'] = check_choice(data.get('source') or 'website', SOURCES, 'source')
    if 'tags' in data or creating:
        doc['tags'] = parse_list(data.get('tags'))

    if creating:
        doc['subscribed_at'] = _now()
        doc['metadata'] = {**(metadata or {}), **_clean_metadata(data.get('metadata'))}
    elif 'metadata' in data:
        doc['metadata'] = {**existing.get('metadata', {}), **_clean_metadata(data['metadata'])}

    was_unsubscribed = existing is not None and existing.get('status') == 'unsubscribed'
    if not creating and doc.get('status') == 'unsubscribed' and not was_unsubscribed:
        doc['unsubscribed_at'] = _now()

    return doc


def run_bulk_action(repository, action, emails, data=None):
    """Validate, then apply one bulk action as a single statement"""
    if action not in BULK_ACTIONS:
        raise UnknownActionError('Invalid bulk action')
    if not isinstance(emails, list) or not emails:
        raise ValidationError('Invalid bulk operation parameters', field='emails')
    data = data if isinstance(data, dict) else {}

    normalized = []
    for email in emails:
        email = str(email).strip().lower()
        if action == 'subscribe' and not validate_email(email):
            raise ValidationError(f"Invalid email address: {email}", field='emails')
        if email and email not in normalized:
            normalized.append(email)

    if action == 'subscribe':
        if data.get('source'):
            check_choice(data['source'], SOURCES, 'source')
        result = repository.bulk_subscribe(normalized, data)
    elif action == 'unsubscribe':
        result = repository.bulk_unsubscribe(normalized)
    elif action == 'delete':
        result = repository.bulk_delete(normalized)
    else:
        changes = {}
        if 'name' in data:
            changes['name'] = clean_text(data['name']) or ''
        if data.get('status'):
            changes['status'] = check_choice(data['status'], STATUSES, 'status')
        if data.get('source'):
            changes['source'] = check_choice(data['source'], SOURCES, 'source')
        if 'tags' in data:
            changes['tags'] = parse_list(data['tags'])
        if not changes:
            raise ValidationError('No fields to update', field='data')
        result = repository.bulk_update(normalized, changes)

    result.update({'action': action, 'matched': len(normalized)})
    return result


def export_rows(subscribers):
    for s in subscribers:
        yield [
            s['email'], s['name'], s['status'], s['source'],
            s['subscribed_at'], s.get('unsubscribed_at') or '', '; '.join(s['tags']),
        ]
