from ...core.documents import clean_text, require, check_max_length, slugify
from ...core.errors import ConflictError, ValidationError
from ...core.resource import Repository


def _term_table(table):
    return f"""
        CREATE TABLE IF NOT EXISTS {table} (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            slug TEXT NOT NULL UNIQUE,
            description TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """


def init_taxonomy_db(database):
    database.execute_script([_term_table('tags'), _term_table('categories')], name='taxonomy')


class TermRepository(Repository):
    """Tags and categories share one shape: unique name, derived slug"""
    search_fields = ('name', 'slug')
    order_by = 'name ASC, id ASC'
    max_name_length = 30

    @property
    def unique_messages(self):
        return {
            'name': f"{self.label} with this name already exists",
            'slug': f"{self.label} with this slug already exists",
        }


class TagRepository(TermRepository):
    table = 'tags'
    label = 'Tag'
    max_name_length = 30


class CategoryRepository(TermRepository):
    table = 'categories'
    label = 'Category'
    max_name_length = 50


def prepare_term(data, repository, existing=None):
    """Normalize a tag/category body; the slug is derived once, when absent"""
    doc = {}
    if 'name' in data or existing is None:
        require(data, ('name',), {'name': f"{repository.label} name"})
        doc['name'] = clean_text(data['name'])
        check_max_length(doc, {'name': repository.max_name_length}, {'name': f"{repository.label} name"})
        clash = repository.find_one(name=doc['name'])
        if clash and (existing is None or clash['id'] != existing['id']):
            raise ConflictError(f"{repository.label} with this name already exists", field='name')
    if 'description' in data:
        doc['description'] = clean_text(data['description'])

    if data.get('slug'):
        doc['slug'] = slugify(data['slug'])
    elif existing is None or not existing.get('slug'):
        doc['slug'] = slugify(doc.get('name') or '')

    if 'slug' in doc and not doc['slug']:
        raise ValidationError(
            f"{repository.label} name must contain letters or numbers", field='name'
        )
    return doc
