"""
Upload Module
=============

Image upload with Pillow conversion to WebP, and deletion of stored files.
"""

from flask import Blueprint

upload_bp = Blueprint('upload', __name__, url_prefix='/api/upload')

from . import routes

__all__ = ['upload_bp']
