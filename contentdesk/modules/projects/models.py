from ..services.models import ServiceRepository
from ...core.documents import (
    clean_text, require, check_max_length, slugify, parse_date, parse_id_list,
)
from ...core.errors import ValidationError
from ...core.resource import Repository

REQUIRED_FIELDS = ('title', 'description', 'client_name', 'completed_date', 'location', 'content')


def init_projects_db(database):
    database.execute_script([
        """
        CREATE TABLE IF NOT EXISTS projects (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            slug TEXT NOT NULL UNIQUE,
            cover_image TEXT,
            logo TEXT,
            description TEXT NOT NULL,
            client_name TEXT NOT NULL,
            services TEXT NOT NULL DEFAULT '[]',
            completed_date TEXT NOT NULL,
            location TEXT NOT NULL,
            content TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
    ], name='projects')


class ProjectRepository(Repository):
    table = 'projects'
    label = 'Project'
    json_columns = {'services': list}
    search_fields = ('title', 'client_name', 'location', 'description')
    unique_messages = {'slug': 'A project with this slug already exists'}

    def populate(self, docs):
        services = ServiceRepository(self.database).summaries(
            service for doc in docs for service in doc['services']
        )
        for doc in docs:
            doc['services'] = [services[s] for s in doc['services'] if s in services]
        return docs


def prepare_project(data, database, existing=None):
    creating = existing is None
    doc = {}
    for field in ('title', 'cover_image', 'logo', 'client_name', 'location'):
        if field in data:
            doc[field] = clean_text(data[field])
    for field in ('description', 'content'):
        if field in data:
            doc[field] = data[field]
    if data.get('completed_date') not in (None, ''):
        doc['completed_date'] = parse_date(data['completed_date'], 'completed_date')
    if 'services' in data:
        doc['services'] = parse_id_list(data['services'], 'services')
        missing = set(doc['services']) - ServiceRepository(database).existing_ids(doc['services'])
        if missing:
            raise ValidationError(
                f"Unknown service ids: {', '.join(str(i) for i in sorted(missing))}", field='services'
            )

    if creating:
        require(doc, REQUIRED_FIELDS)
    else:
        require(doc, [f for f in REQUIRED_FIELDS if f in data])
    check_max_length(doc, {'title': 200})

    title_changed = 'title' in doc and (creating or doc['title'] != existing.get('title'))
    if title_changed or not (existing or {}).get('slug'):
        doc['slug'] = slugify(doc.get('title') or existing.get('title'))
    elif data.get('slug'):
        doc['slug'] = slugify(data['slug'])
    if 'slug' in doc and not doc['slug']:
        raise ValidationError('Title must contain letters or numbers', field='title')
    return doc
