from datetime import datetime, timezone

from ..taxonomy.models import TagRepository, CategoryRepository
from ...core.documents import (
    clean_text, require, check_max_length, check_choice, slugify, derive_excerpt,
    parse_bool, parse_int, parse_id_list, parse_list,
)
from ...core.errors import ValidationError
from ...core.resource import Repository

STATUSES = ('draft', 'published', 'archived')

TEXT_FIELDS = ('title', 'excerpt', 'cover_image', 'meta_title', 'meta_description')
COUNTER_FIELDS = ('views', 'likes', 'reading_time')


def init_blog_db(database):
    database.execute_script([
        """
        CREATE TABLE IF NOT EXISTS blog_posts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            slug TEXT NOT NULL UNIQUE,
            content TEXT NOT NULL,
            excerpt TEXT,
            cover_image TEXT,
            published INTEGER NOT NULL DEFAULT 0,
            status TEXT NOT NULL DEFAULT 'draft',
            category_id INTEGER NOT NULL,
            tags TEXT NOT NULL DEFAULT '[]',
            meta_title TEXT,
            meta_description TEXT,
            seo_keywords TEXT NOT NULL DEFAULT '[]',
            views INTEGER NOT NULL DEFAULT 0,
            likes INTEGER NOT NULL DEFAULT 0,
            reading_time INTEGER NOT NULL DEFAULT 5,
            published_at TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_blog_posts_status ON blog_posts(status)",
        "CREATE INDEX IF NOT EXISTS idx_blog_posts_category ON blog_posts(category_id)",
    ], name='blog_posts')


class BlogRepository(Repository):
    table = 'blog_posts'
    label = 'Blog'
    json_columns = {'tags': list, 'seo_keywords': list}
    bool_columns = ('published',)
    search_fields = ('title', 'excerpt', 'content')
    filter_params = {
        'status': 'status',
        'category': ('category_id', parse_int),
        'published': ('published', parse_bool),
    }
    unique_messages = {'slug': 'A blog post with this slug already exists'}

    def populate(self, docs):
        categories = CategoryRepository(self.database).summaries(doc['category_id'] for doc in docs)
        tags = TagRepository(self.database).summaries(tag for doc in docs for tag in doc['tags'])
        for doc in docs:
            doc['category'] = categories.get(doc.pop('category_id'))
            doc['tags'] = [tags[tag] for tag in doc['tags'] if tag in tags]
        return docs

    def stats_overview(self):
        row = self.database.fetch_one(
            f"""
            SELECT COUNT(*) AS total,
                   COALESCE(SUM(CASE WHEN published = 1 THEN 1 ELSE 0 END), 0) AS published,
                   COALESCE(SUM(CASE WHEN status = 'draft' THEN 1 ELSE 0 END), 0) AS drafts,
                   COALESCE(SUM(views), 0) AS total_views
            FROM {self.table}
            """
        )
        return row

    def toggle_publish(self, blog_id):
        blog = self.get_or_404(blog_id)
        published = not blog['published']
        changes = {'published': published, 'status': 'published' if published else 'draft'}
        if published and not blog.get('published_at'):
            changes['published_at'] = datetime.now(timezone.utc).isoformat()
        self.update(blog_id, changes)
        return published


def _check_references(database, doc):
    if 'category_id' in doc:
        if not CategoryRepository(database).existing_ids([doc['category_id']]):
            raise ValidationError('Category not found', field='category')
    if doc.get('tags'):
        missing = set(doc['tags']) - TagRepository(database).existing_ids(doc['tags'])
        if missing:
            raise ValidationError(
                f"Unknown tag ids: {', '.join(str(i) for i in sorted(missing))}", field='tags'
            )


def prepare_blog(data, database, existing=None):
    """
    Build the column changes for a create (existing=None) or a partial update.

    Derives the slug when the title changes or no slug exists, stamps
    published_at on the first publish, and fills the excerpt from the
    content when none is set.
    """
    creating = existing is None
    doc = {}

    for field in TEXT_FIELDS:
        if field in data:
            doc[field] = clean_text(data[field])
    if 'content' in data:
        doc['content'] = data['content']
    if 'published' in data:
        doc['published'] = parse_bool(data['published'], 'published')
    if 'status' in data:
        doc['status'] = check_choice(data['status'], STATUSES, 'status')

    category = data.get('category', data.get('category_id'))
    if category not in (None, ''):
        doc['category_id'] = parse_int(category, 'category')
    if 'tags' in data:
        doc['tags'] = parse_id_list(data['tags'], 'tags')
    if 'seo_keywords' in data:
        doc['seo_keywords'] = parse_list(data['seo_keywords'])
    for field in COUNTER_FIELDS:
        if field in data and data[field] not in (None, ''):
            value = parse_int(data[field], field)
            if value < 0:
                raise ValidationError(f"{field} cannot be negative", field=field)
            doc[field] = value

    merged = dict(existing or {})
    merged.update(doc)

    if creating:
        require(merged, ('title', 'content'))
        if merged.get('category_id') is None:
            raise ValidationError('Category is required', field='category')
    else:
        require(doc, [f for f in ('title', 'content') if f in doc])
    check_max_length(doc, {'title': 200})
    _check_references(database, doc)

    title_changed = 'title' in doc and (creating or doc['title'] != existing.get('title'))
    if title_changed or not merged.get('slug'):
        doc['slug'] = slugify(merged.get('title'))
    elif data.get('slug'):
        doc['slug'] = slugify(data['slug'])
    if 'slug' in doc and not doc['slug']:
        raise ValidationError('Title must contain letters or numbers', field='title')

    if doc.get('published') and not merged.get('published_at'):
        doc['published_at'] = datetime.now(timezone.utc).isoformat()

    if not merged.get('excerpt') and merged.get('content'):
        doc['excerpt'] = derive_excerpt(merged['content'])

    return doc
