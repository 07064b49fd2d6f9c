import os
from dotenv import load_dotenv

load_dotenv()


def _float_or_none(value):
    if value in (None, ''):
        return None
    return float(value)


class Config:
    """
    Base configuration for ContentDesk.
    Values come from environment variables; Flask app.config keys that are
    already set when ContentDesk(app) runs take precedence.
    """
    # Flask settings
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY', 'dev-secret-key-change-in-production')

    # JWT auth
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY') or os.getenv('JWT_SECRET', 'dev-jwt-secret-change-in-production')
    JWT_EXPIRES_HOURS = int(os.getenv('JWT_EXPIRES_HOURS', '168'))

    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))
    DATABASE_PATH = os.getenv('DATABASE_PATH', os.path.join(DB_DIR, 'contentdesk.db'))

    # Uploads
    UPLOAD_FOLDER = os.getenv('UPLOAD_FOLDER', os.path.join(os.getcwd(), 'uploads', 'blog-covers'))
    UPLOAD_MAX_BYTES = int(os.getenv('UPLOAD_MAX_BYTES', str(10 * 1024 * 1024)))
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_CONTENT_LENGTH', str(16 * 1024 * 1024)))
    IMAGE_MAX_WIDTH = int(os.getenv('IMAGE_MAX_WIDTH', '800'))
    IMAGE_MAX_HEIGHT = int(os.getenv('IMAGE_MAX_HEIGHT', '600'))
    IMAGE_QUALITY = int(os.getenv('IMAGE_QUALITY', '80'))

    # CORS
    ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.getenv('ALLOWED_ORIGINS', 'http://localhost:3000,http://localhost:3001').split(',')
        if origin.strip()
    ]

    # Email settings ('smtp' or 'resend')
    EMAIL_PROVIDER = os.getenv('EMAIL_PROVIDER', 'smtp')
    EMAIL_ADDRESS = os.getenv('EMAIL_ADDRESS') or os.getenv('EMAIL_USER', '')
    EMAIL_PASSWORD = os.getenv('EMAIL_PASSWORD') or os.getenv('EMAIL_PASS')
    EMAIL_HOST = os.getenv('EMAIL_HOST', 'smtp.gmail.com')
    EMAIL_PORT = int(os.getenv('EMAIL_PORT', '587'))
    RESEND_API_KEY = os.getenv('RESEND_API_KEY')
    EMAIL_BRAND_NAME = os.getenv('EMAIL_BRAND_NAME', 'ContentDesk')
    EMAIL_WEBSITE_URL = os.getenv('EMAIL_WEBSITE_URL', 'http://localhost:3000')
    EMAIL_ADMIN_EMAIL = os.getenv('EMAIL_ADMIN_EMAIL')
    EMAIL_SEND_DELAY = float(os.getenv('EMAIL_SEND_DELAY', '0.6'))

    # Newsletter campaigns
    CAMPAIGN_SEND_DELAY = float(os.getenv('CAMPAIGN_SEND_DELAY', '0.1'))
    CAMPAIGN_MAX_DURATION = _float_or_none(os.getenv('CAMPAIGN_MAX_DURATION'))

    # Listing
    MAX_PAGE_LIMIT = int(os.getenv('MAX_PAGE_LIMIT', '100'))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Port for local server
    PORT = int(os.getenv('PORT', '5000'))

    @classmethod
    def as_dict(cls):
        """Upper-case settings as a plain dict (for app.config.setdefault)"""
        return {key: getattr(cls, key) for key in dir(cls) if key.isupper()}
