"""
ContentDesk Admin Client
========================

requests-based client for the admin API with a TTL response cache.
"""

from .api import AdminClient, ApiError, AuthenticationError
from .cache import ResponseCache

__all__ = ['AdminClient', 'ApiError', 'AuthenticationError', 'ResponseCache']
