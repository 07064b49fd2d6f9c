"""
Taxonomy Routes
===============

Tags and categories expose identical CRUD endpoints, so both blueprints are
built by one factory.
"""

from flask import Blueprint, request

from ..auth import auth_required
from .models import TagRepository, CategoryRepository, prepare_term
from ...core.logging_service import db_log
from ...core.resource import (
    get_database, handle_errors, parse_pagination, request_data, success,
)


def create_taxonomy_blueprint(name, url_prefix, repository_class, item_key):
    bp = Blueprint(name, __name__, url_prefix=url_prefix)
    label = repository_class.label

    def repository():
        return repository_class(get_database())

    @bp.route('', methods=['GET'])
    @auth_required()
    @handle_errors(f"Failed to fetch {name}")
    def list_terms():
        repo = repository()
        page, limit = parse_pagination(request.args, default_limit=100)
        items, pagination = repo.list(
            repo.filters_from_args(request.args), request.args.get('search'), page, limit
        )
        return success({'items': items, 'pagination': pagination})

    @bp.route('/<int:term_id>', methods=['GET'])
    @auth_required()
    @handle_errors(f"Failed to fetch {item_key}")
    def get_term(term_id):
        return success({item_key: repository().get_or_404(term_id)})

    @bp.route('', methods=['POST'])
    @auth_required()
    @handle_errors(f"Failed to create {item_key}")
    def create_term():
        repo = repository()
        doc = prepare_term(request_data(), repo)
        term = repo.get(repo.insert(doc))
        db_log('info', name, f"{label} created: {term['name']}")
        return success({item_key: term}, f"{label} created successfully", 201)

    @bp.route('/<int:term_id>', methods=['PUT'])
    @auth_required()
    @handle_errors(f"Failed to update {item_key}")
    def update_term(term_id):
        repo = repository()
        existing = repo.get_or_404(term_id)
        changes = prepare_term(request_data(), repo, existing)
        if changes:
            repo.update(term_id, changes)
        return success({item_key: repo.get(term_id)}, f"{label} updated successfully")

    @bp.route('/<int:term_id>', methods=['DELETE'])
    @auth_required()
    @handle_errors(f"Failed to delete {item_key}")
    def delete_term(term_id):
        repo = repository()
        repo.get_or_404(term_id)
        repo.delete(term_id)
        db_log('info', name, f"{label} deleted", {'id': term_id})
        return success(message=f"{label} deleted successfully")

    return bp


tags_bp = create_taxonomy_blueprint('tags', '/api/tags', TagRepository, 'tag')
categories_bp = create_taxonomy_blueprint('categories', '/api/categories', CategoryRepository, 'category')
