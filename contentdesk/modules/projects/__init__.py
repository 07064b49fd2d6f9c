"""
Projects Module
===============

Admin API for portfolio projects.
"""

from flask import Blueprint

projects_bp = Blueprint('projects', __name__, url_prefix='/api/projects')

from . import routes
from .models import ProjectRepository, init_projects_db

__all__ = ['projects_bp', 'ProjectRepository', 'init_projects_db']
