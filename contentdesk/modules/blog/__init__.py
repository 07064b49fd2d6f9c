"""
Blog Module
===========

Admin API for blog posts.

Provides:
- Post creation and editing with derived slugs and excerpts
- Draft/publish workflow
- Category and tag references
"""

from flask import Blueprint

blog_bp = Blueprint('blog', __name__, url_prefix='/api/blogposts')

from . import routes
from .models import BlogRepository, init_blog_db

__all__ = ['blog_bp', 'BlogRepository', 'init_blog_db']
