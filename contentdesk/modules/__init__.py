"""
ContentDesk Modules
===================

Flask blueprint modules for the content management API.
"""

__all__ = [
    'analytics', 'auth', 'blog', 'email', 'health', 'messages',
    'newsletter', 'projects', 'services', 'taxonomy', 'upload',
]
