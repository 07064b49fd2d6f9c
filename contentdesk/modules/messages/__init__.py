"""
Messages Module
===============

Contact form messages with status workflow, assignment and email replies.
"""

from flask import Blueprint

messages_bp = Blueprint('messages', __name__, url_prefix='/api/messages')

from . import routes
from .models import MessageRepository, init_messages_db

__all__ = ['messages_bp', 'MessageRepository', 'init_messages_db']
