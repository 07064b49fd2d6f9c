from ...core.documents import clean_text, require, check_max_length, slugify, parse_bool
from ...core.errors import ValidationError
from ...core.resource import Repository


def init_services_db(database):
    database.execute_script([
        """
        CREATE TABLE IF NOT EXISTS services (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            slug TEXT NOT NULL UNIQUE,
            description TEXT,
            icon TEXT,
            active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
    ], name='services')


class ServiceRepository(Repository):
    table = 'services'
    label = 'Service'
    bool_columns = ('active',)
    search_fields = ('name', 'description')
    filter_params = {'active': ('active', parse_bool)}
    unique_messages = {'slug': 'A service with this slug already exists'}


def prepare_service(data, existing=None):
    creating = existing is None
    doc = {}
    for field in ('name', 'description', 'icon'):
        if field in data:
            doc[field] = clean_text(data[field])
    if 'active' in data:
        doc['active'] = parse_bool(data['active'], 'active')
    elif creating:
        doc['active'] = True

    if creating or 'name' in doc:
        require(doc, ('name',), {'name': 'Service name'})
    check_max_length(doc, {'name': 100}, {'name': 'Service name'})

    name_changed = 'name' in doc and (creating or doc['name'] != existing.get('name'))
    if name_changed or not (existing or {}).get('slug'):
        doc['slug'] = slugify(doc.get('name') or existing.get('name'))
    elif data.get('slug'):
        doc['slug'] = slugify(data['slug'])
    if 'slug' in doc and not doc['slug']:
        raise ValidationError('Service name must contain letters or numbers', field='name')
    return doc
