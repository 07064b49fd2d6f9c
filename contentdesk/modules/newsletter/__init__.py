"""
Newsletter Module
=================

Newsletter subscribers and email campaigns.

Provides:
- Public subscribe endpoint
- Subscriber admin with bulk actions, stats and CSV export
- Sequential campaign sending through the email service
"""

from flask import Blueprint

newsletter_bp = Blueprint('newsletter', __name__, url_prefix='/api/newsletter')

from . import routes
from .campaigns import CampaignDispatcher
from .models import SubscriberRepository, init_newsletter_db

__all__ = ['newsletter_bp', 'CampaignDispatcher', 'SubscriberRepository', 'init_newsletter_db']
