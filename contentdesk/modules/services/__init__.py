"""
Services Module
===============

Services offered by the studio, referenced by projects.
"""

from flask import Blueprint

services_bp = Blueprint('services', __name__, url_prefix='/api/services')

from . import routes
from .models import ServiceRepository, init_services_db

__all__ = ['services_bp', 'ServiceRepository', 'init_services_db']
