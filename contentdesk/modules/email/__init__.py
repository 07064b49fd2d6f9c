"""
Email Module
============

Provides email sending over SMTP or the Resend API, with templates for
contact message replies and admin notifications.
"""

from .email_service import EmailService, init_email_db

__all__ = ['EmailService', 'init_email_db']
