"""
Health Module
=============

Public health endpoint for uptime monitors.
"""

from flask import Blueprint

health_bp = Blueprint('health', __name__, url_prefix='/api/health')

from . import routes

__all__ = ['health_bp']
