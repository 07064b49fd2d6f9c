"""
ContentDesk - A Flask Content Management API
============================================

A modular Flask backend for a small agency site:
- Blog posts, projects and services with tags and categories
- Newsletter subscribers and email campaigns
- Contact form messages with staff replies
- Image uploads converted to WebP
- JWT-protected admin API

Usage:
    from flask import Flask
    from contentdesk import ContentDesk

    app = Flask(__name__)
    ContentDesk(app)
"""

import logging
import os
from datetime import timedelta

from flask_cors import CORS

from .core import Config, Database, LoggingService
from .core.errors import register_error_handlers
from .core.logging_service import init_logs_db

__version__ = '0.1.0'

logger = logging.getLogger(__name__)

DEFAULT_FEATURES = {
    'auth': True,
    'blog': True,
    'projects': True,
    'services': True,
    'taxonomy': True,
    'newsletter': True,
    'messages': True,
    'upload': True,
    'analytics': True,
    'health': True,
}


class ContentDesk:
    """
    Flask extension that wires ContentDesk into an app.

    Builds the database, email service and log sink, creates every table,
    and registers the enabled blueprints. The instance is stored on
    app.extensions['contentdesk'].

    Config dict:
        features: {module_name: bool} to switch modules off
        email_service: ready-made EmailService-like object (tests inject a mock)
    """

    def __init__(self, app=None, config=None):
        self._config = config or {}
        self._registered_modules = []
        self.database = None
        self.email_service = None
        self.log_service = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self._apply_config(app)
        self._setup_database(app)
        self._setup_email(app)

        CORS(
            app,
            resources={r"/api/*": {"origins": app.config['ALLOWED_ORIGINS']}},
            supports_credentials=True,
        )

        from .modules.auth import configure_jwt
        configure_jwt(app)
        register_error_handlers(app)

        self._register_modules(app)

        app.extensions['contentdesk'] = self
        logger.info(f"ContentDesk initialized with modules: {', '.join(self._registered_modules)}")

    def _apply_config(self, app):
        if app.config.get('DB_DIR') and not app.config.get('DATABASE_PATH'):
            app.config['DATABASE_PATH'] = os.path.join(app.config['DB_DIR'], 'contentdesk.db')

        # Flask pre-populates some keys (SECRET_KEY, MAX_CONTENT_LENGTH) with None
        for key, value in Config.as_dict().items():
            if app.config.get(key) is None:
                app.config[key] = value

        app.config.setdefault('JWT_ACCESS_TOKEN_EXPIRES', timedelta(hours=app.config['JWT_EXPIRES_HOURS']))

    def _setup_database(self, app):
        from .modules.auth import init_auth_db
        from .modules.blog import init_blog_db
        from .modules.email import init_email_db
        from .modules.messages import init_messages_db
        from .modules.newsletter import init_newsletter_db
        from .modules.projects import init_projects_db
        from .modules.services import init_services_db
        from .modules.taxonomy import init_taxonomy_db

        self.database = Database(app.config['DATABASE_PATH'])
        self.database.ensure_directory()

        for init_db in (
            init_logs_db,
            init_email_db,
            init_auth_db,
            init_taxonomy_db,
            init_blog_db,
            init_services_db,
            init_projects_db,
            init_newsletter_db,
            init_messages_db,
        ):
            init_db(self.database)

        self.log_service = LoggingService(self.database)

    def _setup_email(self, app):
        if self._config.get('email_service') is not None:
            self.email_service = self._config['email_service']
            return

        from .modules.email import EmailService
        self.email_service = EmailService(app, self.database)

    def _feature_enabled(self, name):
        return self._config.get('features', {}).get(name, DEFAULT_FEATURES.get(name, False))

    def _register_modules(self, app):
        from .modules.analytics import analytics_bp
        from .modules.auth import auth_bp
        from .modules.blog import blog_bp
        from .modules.health import health_bp
        from .modules.messages import messages_bp
        from .modules.newsletter import newsletter_bp
        from .modules.projects import projects_bp
        from .modules.services import services_bp
        from .modules.taxonomy import categories_bp, tags_bp
        from .modules.upload import upload_bp

        modules = [
            ('auth', [auth_bp]),
            ('blog', [blog_bp]),
            ('projects', [projects_bp]),
            ('services', [services_bp]),
            ('taxonomy', [tags_bp, categories_bp]),
            ('newsletter', [newsletter_bp]),
            ('messages', [messages_bp]),
            ('upload', [upload_bp]),
            ('analytics', [analytics_bp]),
            ('health', [health_bp]),
        ]

        for name, blueprints in modules:
            if not self._feature_enabled(name):
                continue
            for blueprint in blueprints:
                app.register_blueprint(blueprint)
            self._registered_modules.append(name)

    def get_registered_modules(self):
        return list(self._registered_modules)


__all__ = ['ContentDesk', 'Config']
