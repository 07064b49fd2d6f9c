"""
Projects Admin Routes
=====================

Portfolio project management with populated service references.
"""

from flask import request

from . import projects_bp
from .models import ProjectRepository, prepare_project
from ..auth import auth_required
from ...core.logging_service import db_log
from ...core.resource import (
    get_database, handle_errors, parse_pagination, request_data, success,
)


@projects_bp.route('', methods=['GET'])
@auth_required()
@handle_errors('Failed to fetch projects')
def get_projects():
    projects = ProjectRepository(get_database())
    page, limit = parse_pagination(request.args)
    items, pagination = projects.list(
        projects.filters_from_args(request.args), request.args.get('search'), page, limit
    )
    return success({'items': items, 'pagination': pagination})


@projects_bp.route('/<int:project_id>', methods=['GET'])
@auth_required()
@handle_errors('Failed to fetch project')
def get_project(project_id):
    projects = ProjectRepository(get_database())
    return success({'project': projects.populate_one(projects.get_or_404(project_id))})


@projects_bp.route('', methods=['POST'])
@auth_required()
@handle_errors('Failed to create project')
def create_project():
    projects = ProjectRepository(get_database())
    doc = prepare_project(request_data(), projects.database)
    project_id = projects.insert(doc)
    db_log('info', 'projects', f"Project created: {doc['title']}", {'id': project_id})
    return success(
        {'project': projects.populate_one(projects.get(project_id))},
        'Project created successfully', 201,
    )


@projects_bp.route('/<int:project_id>', methods=['PUT'])
@auth_required()
@handle_errors('Failed to update project')
def update_project(project_id):
    projects = ProjectRepository(get_database())
    existing = projects.get_or_404(project_id)
    changes = prepare_project(request_data(), projects.database, existing)
    if changes:
        projects.update(project_id, changes)
    return success(
        {'project': projects.populate_one(projects.get(project_id))},
        'Project updated successfully',
    )


@projects_bp.route('/<int:project_id>', methods=['DELETE'])
@auth_required()
@handle_errors('Failed to delete project')
def delete_project(project_id):
    projects = ProjectRepository(get_database())
    project = projects.get_or_404(project_id)
    projects.delete(project_id)
    db_log('info', 'projects', f"Project deleted: {project['title']}", {'id': project_id})
    return success(message='Project deleted successfully')
