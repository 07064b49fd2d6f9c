"""
Generic Resource Pattern
========================

Shared pieces behind every blueprint: the Repository base class (filtered,
paginated SQLite access with JSON-array columns), request parsing helpers,
the JSON envelope, the handle_errors route decorator and CSV export.
"""

import csv
import io
import json
import logging
import sqlite3
from datetime import date, datetime, timezone
from functools import wraps

from flask import current_app, jsonify, request, Response
from werkzeug.exceptions import HTTPException

from .documents import parse_int
from .errors import ContentDeskError, ConflictError, NotFoundError, ValidationError, error_envelope
from .logging_service import db_log

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 10


# ===== Extension state =====

def get_state():
    return current_app.extensions['contentdesk']


def get_database():
    return get_state().database


def get_email_service():
    return get_state().email_service


# ===== Repository =====

def escape_like(value):
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def placeholders(values):
    return ', '.join('?' for _ in values)


class Repository:
    """
    Table-backed store for one resource.

    Subclasses set the table name, the JSON columns (with the empty value
    they decode to), boolean columns, the free-text search fields, the
    query parameters usable as equality filters and the sort order.
    """
    table = None
    label = 'Document'
    json_columns = {}
    bool_columns = ()
    search_fields = ()
    filter_params = {}
    order_by = 'created_at DESC, id DESC'
    unique_messages = {}

    def __init__(self, database):
        self.database = database

    # --- row conversion ---

    def decode(self, row):
        if row is None:
            return None
        doc = dict(row)
        for column, empty in self.json_columns.items():
            if column in doc:
                doc[column] = json.loads(doc[column]) if doc[column] else empty()
        for column in self.bool_columns:
            if column in doc and doc[column] is not None:
                doc[column] = bool(doc[column])
        return doc

    def encode(self, doc):
        row = {}
        for column, value in doc.items():
            if column in self.json_columns and value is not None:
                value = json.dumps(value)
            elif column in self.bool_columns and value is not None:
                value = 1 if value else 0
            row[column] = value
        return row

    def populate(self, docs):
        """Replace reference ids with their minimal projection"""
        return docs

    def populate_one(self, doc):
        if doc is None:
            return None
        return self.populate([doc])[0]

    # --- query building ---

    def filters_from_args(self, args):
        """Equality filters from query parameters; 'all' disables a filter"""
        filters = {}
        for param, spec in self.filter_params.items():
            value = args.get(param)
            if value in (None, '', 'all'):
                continue
            column, cast = spec if isinstance(spec, tuple) else (spec, None)
            filters[column] = cast(value, param) if cast else value
        return filters

    def build_where(self, filters=None, search=None):
        clauses, params = [], []
        for column, value in (filters or {}).items():
            if value is None:
                continue
            if isinstance(value, (list, tuple, set)):
                value = list(value)
                clauses.append(f"{column} IN ({placeholders(value)})")
                params.extend(value)
            else:
                clauses.append(f"{column} = ?")
                params.append(value)

        search = (search or '').strip()
        if search and self.search_fields:
            pattern = f"%{escape_like(search.lower())}%"
            clauses.append(
                '(' + ' OR '.join(f"unicode_lower({field}) LIKE ? ESCAPE '\\'" for field in self.search_fields) + ')'
            )
            params.extend([pattern] * len(self.search_fields))

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ''
        return where, params

    # --- reads ---

    def list(self, filters=None, search=None, page=1, limit=DEFAULT_PAGE_LIMIT):
        where, params = self.build_where(filters, search)
        total = self.database.scalar(f"SELECT COUNT(*) FROM {self.table}{where}", params)
        rows = self.database.fetch_all(
            f"SELECT * FROM {self.table}{where} ORDER BY {self.order_by} LIMIT ? OFFSET ?",
            params + [limit, (page - 1) * limit],
        )
        items = self.populate([self.decode(row) for row in rows])
        return items, pagination_meta(page, limit, total)

    def find_all(self, filters=None, search=None):
        where, params = self.build_where(filters, search)
        rows = self.database.fetch_all(
            f"SELECT * FROM {self.table}{where} ORDER BY {self.order_by}", params
        )
        return [self.decode(row) for row in rows]

    def get(self, doc_id):
        return self.decode(self.database.fetch_one(
            f"SELECT * FROM {self.table} WHERE id = ?", (doc_id,)
        ))

    def get_or_404(self, doc_id):
        doc = self.get(doc_id)
        if doc is None:
            raise NotFoundError(f"{self.label} not found")
        return doc

    def find_one(self, **conditions):
        where, params = self.build_where(conditions)
        return self.decode(self.database.fetch_one(
            f"SELECT * FROM {self.table}{where} LIMIT 1", params
        ))

    def count(self, filters=None):
        where, params = self.build_where(filters)
        return self.database.scalar(f"SELECT COUNT(*) FROM {self.table}{where}", params)

    def count_by(self, column, filters=None):
        where, params = self.build_where(filters)
        rows = self.database.fetch_all(
            f"SELECT {column} AS value, COUNT(*) AS count FROM {self.table}{where} GROUP BY {column}",
            params,
        )
        return {row['value']: row['count'] for row in rows}

    def recent(self, limit=5, columns='*'):
        rows = self.database.fetch_all(
            f"SELECT {columns} FROM {self.table} ORDER BY created_at DESC, id DESC LIMIT ?", (limit,)
        )
        return [self.decode(row) for row in rows]

    def existing_ids(self, ids):
        ids = list(ids)
        if not ids:
            return set()
        rows = self.database.fetch_all(
            f"SELECT id FROM {self.table} WHERE id IN ({placeholders(ids)})", ids
        )
        return {row['id'] for row in rows}

    def summaries(self, ids, fields=('id', 'name', 'slug')):
        """Minimal projections keyed by id, for populating references"""
        ids = [i for i in set(ids) if i is not None]
        if not ids:
            return {}
        rows = self.database.fetch_all(
            f"SELECT {', '.join(fields)} FROM {self.table} WHERE id IN ({placeholders(ids)})", ids
        )
        return {row['id']: row for row in rows}

    # --- writes ---

    def _raise_integrity(self, error):
        text = str(error)
        if text.startswith('UNIQUE constraint failed'):
            column = text.split(':', 1)[1].strip().split(',')[0].split('.')[-1]
            raise ConflictError(
                self.unique_messages.get(column, f"{self.label} with this {column} already exists"),
                field=column,
            )
        raise ValidationError(text)

    def insert(self, doc):
        now = datetime.now(timezone.utc).isoformat()
        row = self.encode(doc)
        row.setdefault('created_at', now)
        row.setdefault('updated_at', now)
        columns = list(row)
        try:
            _, doc_id = self.database.execute(
                f"INSERT INTO {self.table} ({', '.join(columns)}) VALUES ({placeholders(columns)})",
                [row[c] for c in columns],
            )
        except sqlite3.IntegrityError as e:
            self._raise_integrity(e)
        return doc_id

    def update(self, doc_id, changes):
        row = self.encode(changes)
        row['updated_at'] = datetime.now(timezone.utc).isoformat()
        assignments = ', '.join(f"{column} = ?" for column in row)
        try:
            updated, _ = self.database.execute(
                f"UPDATE {self.table} SET {assignments} WHERE id = ?",
                list(row.values()) + [doc_id],
            )
        except sqlite3.IntegrityError as e:
            self._raise_integrity(e)
        return updated > 0

    def update_many(self, column, values, changes):
        """One UPDATE over every row whose column is in values"""
        values = list(values)
        row = self.encode(changes)
        row['updated_at'] = datetime.now(timezone.utc).isoformat()
        assignments = ', '.join(f"{c} = ?" for c in row)
        updated, _ = self.database.execute(
            f"UPDATE {self.table} SET {assignments} WHERE {column} IN ({placeholders(values)})",
            list(row.values()) + values,
        )
        return updated

    def delete(self, doc_id):
        deleted, _ = self.database.execute(f"DELETE FROM {self.table} WHERE id = ?", (doc_id,))
        return deleted > 0

    def delete_many(self, column, values):
        values = list(values)
        deleted, _ = self.database.execute(
            f"DELETE FROM {self.table} WHERE {column} IN ({placeholders(values)})", values
        )
        return deleted


# ===== Request helpers =====

def request_data():
    """JSON body, or form fields for multipart requests"""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    if request.form:
        return request.form.to_dict()
    return {}


def request_metadata():
    """Client ip, user agent and referrer of the current request"""
    ip = request.headers.get('X-Forwarded-For', request.remote_addr) or ''
    return {
        'ip': ip.split(',')[0].strip() or None,
        'user_agent': request.headers.get('User-Agent'),
        'referrer': request.headers.get('Referer'),
    }


def parse_pagination(args, default_limit=DEFAULT_PAGE_LIMIT):
    page = parse_int(args.get('page'), 'page', 1)
    limit = parse_int(args.get('limit'), 'limit', default_limit)
    max_limit = current_app.config.get('MAX_PAGE_LIMIT', 100)
    return max(page, 1), min(max(limit, 1), max_limit)


def pagination_meta(page, limit, total):
    return {
        'page': page,
        'limit': limit,
        'total': total,
        'pages': (total + limit - 1) // limit,
    }


def success(data=None, message=None, status=200):
    body = {'success': True}
    if data is not None:
        body['data'] = data
    if message:
        body['message'] = message
    return jsonify(body), status


def handle_errors(failure_message):
    """Convert taxonomy errors to their status, anything else to a 500 envelope"""
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except ContentDeskError as e:
                return error_envelope(e.message, e.status_code, field=e.field)
            except HTTPException:
                raise
            except Exception as e:
                logger.exception(f"{failure_message}: {e}")
                db_log('error', request.blueprint or 'api', failure_message, {'error': str(e)})
                return error_envelope(failure_message, 500, error=str(e))
        return wrapper
    return decorator


# ===== CSV export =====

def render_csv(headers, rows):
    """Every field quoted, embedded quotes doubled"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow(headers)
    for row in rows:
        writer.writerow(['' if value is None else value for value in row])
    return buffer.getvalue()


def csv_response(content, resource):
    filename = f"{resource}_export_{date.today().isoformat()}.csv"
    return Response(
        content,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'},
    )
