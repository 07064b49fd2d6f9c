"""
Blog Admin Routes
=================

Blog post management: CRUD, publish toggle and overview stats.
"""

from flask import request

from . import blog_bp
from .models import BlogRepository, prepare_blog
from ..auth import auth_required
from ...core.logging_service import db_log
from ...core.resource import (
    get_database, handle_errors, parse_pagination, request_data, success,
)


def _blogs():
    return BlogRepository(get_database())


@blog_bp.route('', methods=['GET'])
@auth_required()
@handle_errors('Failed to fetch blogs')
def get_blogs():
    """List blog posts with filters and pagination"""
    blogs = _blogs()
    page, limit = parse_pagination(request.args)
    items, pagination = blogs.list(
        blogs.filters_from_args(request.args), request.args.get('search'), page, limit
    )
    return success({'items': items, 'pagination': pagination})


@blog_bp.route('/stats/overview', methods=['GET'])
@auth_required()
@handle_errors('Failed to fetch blog stats')
def get_blog_stats():
    return success(_blogs().stats_overview())


@blog_bp.route('/<int:blog_id>', methods=['GET'])
@auth_required()
@handle_errors('Failed to fetch blog')
def get_blog(blog_id):
    blogs = _blogs()
    return success({'blog': blogs.populate_one(blogs.get_or_404(blog_id))})


@blog_bp.route('', methods=['POST'])
@auth_required()
@handle_errors('Failed to create blog')
def create_blog():
    blogs = _blogs()
    doc = prepare_blog(request_data(), blogs.database)
    blog_id = blogs.insert(doc)
    db_log('info', 'blog', f"Blog created: {doc['title']}", {'id': blog_id, 'slug': doc['slug']})
    return success({'blog': blogs.populate_one(blogs.get(blog_id))}, 'Blog created successfully', 201)


@blog_bp.route('/<int:blog_id>', methods=['PUT'])
@auth_required()
@handle_errors('Failed to update blog')
def update_blog(blog_id):
    blogs = _blogs()
    existing = blogs.get_or_404(blog_id)
    changes = prepare_blog(request_data(), blogs.database, existing)
    if changes:
        blogs.update(blog_id, changes)
    return success({'blog': blogs.populate_one(blogs.get(blog_id))}, 'Blog updated successfully')


@blog_bp.route('/<int:blog_id>', methods=['DELETE'])
@auth_required()
@handle_errors('Failed to delete blog')
def delete_blog(blog_id):
    blogs = _blogs()
    blog = blogs.get_or_404(blog_id)
    blogs.delete(blog_id)
    db_log('info', 'blog', f"Blog deleted: {blog['title']}", {'id': blog_id})
    return success(message='Blog deleted successfully')


@blog_bp.route('/<int:blog_id>/toggle-publish', methods=['PATCH'])
@auth_required()
@handle_errors('Failed to toggle publish status')
def toggle_publish(blog_id):
    blogs = _blogs()
    published = blogs.toggle_publish(blog_id)
    return success(
        {'blog': blogs.populate_one(blogs.get(blog_id))},
        f"Blog {'published' if published else 'unpublished'} successfully",
    )
