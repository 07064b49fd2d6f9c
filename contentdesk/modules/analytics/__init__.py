"""
Analytics Module
================

Dashboard overview across newsletter subscribers and contact messages.
"""

from flask import Blueprint

analytics_bp = Blueprint('analytics', __name__, url_prefix='/api/analytics')

from . import routes

__all__ = ['analytics_bp']
