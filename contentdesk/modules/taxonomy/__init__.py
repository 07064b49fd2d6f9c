"""
Taxonomy Module
===============

Tags and categories referenced by blog posts.
"""

from .routes import tags_bp, categories_bp
from .models import TagRepository, CategoryRepository, init_taxonomy_db

__all__ = ['tags_bp', 'categories_bp', 'TagRepository', 'CategoryRepository', 'init_taxonomy_db']
