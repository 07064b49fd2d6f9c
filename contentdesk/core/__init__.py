"""
ContentDesk Core
================

Core utilities and shared functionality for ContentDesk modules.
"""

from .config import Config
from .database import Database
from .logging_service import LoggingService, db_log

__all__ = ['Config', 'Database', 'LoggingService', 'db_log']
