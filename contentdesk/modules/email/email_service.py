"""
Email Service Module
====================

Configurable email service supporting SMTP and Resend.
Provider is selected via EMAIL_PROVIDER config ('smtp' or 'resend').
All branding is configurable through Flask app config.
"""

import html
import logging
import smtplib
import time
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid, formataddr
from typing import List, Optional, Dict, Any

from ...core.documents import EMAIL_REGEX, strip_html
from ...core.errors import EmailDeliveryError

logger = logging.getLogger(__name__)

# Try to import resend - it's optional
try:
    import resend
    RESEND_AVAILABLE = True
except ImportError:
    RESEND_AVAILABLE = False
    logger.info("resend package not installed.")


def init_email_db(database):
    database.execute_script([
        """
        CREATE TABLE IF NOT EXISTS email_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            recipient TEXT NOT NULL,
            subject TEXT NOT NULL,
            email_type TEXT,
            status TEXT NOT NULL,
            error_message TEXT,
            sent_at TEXT NOT NULL
        )
        """,
    ], name='email_logs')


class EmailService:
    """
    Configurable email service supporting SMTP and Resend.

    Configuration (set in Flask app.config):
        EMAIL_PROVIDER: 'smtp' (default) or 'resend'
        EMAIL_HOST: SMTP server host (default: 'smtp.gmail.com')
        EMAIL_PORT: SMTP server port (default: 587)
        EMAIL_PASSWORD: SMTP password/app password (required if provider is 'smtp')
        RESEND_API_KEY: Your Resend API key (required if provider is 'resend')
        EMAIL_ADDRESS: Sender email address
        EMAIL_BRAND_NAME: Brand name for emails (default: 'ContentDesk')
        EMAIL_WEBSITE_URL: Website URL used in footers
        EMAIL_ADMIN_EMAIL: Admin notification email (falls back to EMAIL_ADDRESS)
    """

    def __init__(self, app=None, database=None):
        self.provider = 'smtp'
        self.api_key = None
        self.sender_email = None
        self.smtp_host = 'smtp.gmail.com'
        self.smtp_port = 587
        self.smtp_password = None
        self.brand_name = 'ContentDesk'
        self.website_url = 'http://localhost:3000'
        self.admin_email = None
        self.send_delay = 0.6
        self.database = database

        if app is not None:
            self.init_app(app, database)

    def init_app(self, app, database=None):
        """Initialize email service with Flask app configuration"""
        self.provider = (app.config.get('EMAIL_PROVIDER') or 'smtp').lower()
        logger.info(f"Initializing email service (provider: {self.provider})")

        self.sender_email = app.config.get('EMAIL_ADDRESS')
        self.brand_name = app.config.get('EMAIL_BRAND_NAME', 'ContentDesk')
        self.website_url = app.config.get('EMAIL_WEBSITE_URL', 'http://localhost:3000')
        self.admin_email = app.config.get('EMAIL_ADMIN_EMAIL') or self.sender_email
        self.send_delay = app.config.get('EMAIL_SEND_DELAY', 0.6)
        if database is not None:
            self.database = database

        if self.provider == 'resend':
            self._init_resend(app)
        else:
            self._init_smtp(app)

    def _init_resend(self, app):
        """Initialize Resend provider"""
        self.api_key = app.config.get('RESEND_API_KEY')

        if not self.api_key:
            logger.warning("RESEND_API_KEY not configured - email sending disabled")
            return

        if not RESEND_AVAILABLE:
            logger.error("resend package not installed")
            return

        resend.api_key = self.api_key
        logger.info("Resend API client initialized successfully")

    def _init_smtp(self, app):
        """Initialize SMTP provider (e.g. Gmail)"""
        self.smtp_host = app.config.get('EMAIL_HOST', 'smtp.gmail.com')
        self.smtp_port = int(app.config.get('EMAIL_PORT', 587))
        self.smtp_password = app.config.get('EMAIL_PASSWORD')

        if not self.smtp_password:
            logger.warning("EMAIL_PASSWORD not configured - SMTP email sending disabled")
            return

        logger.info(f"SMTP configured: {self.smtp_host}:{self.smtp_port}")

    def _log_email(self, recipient: str, subject: str, email_type: str,
                   status: str, error_message: str = None):
        """Log email attempt to database"""
        if self.database is None:
            return
        try:
            self.database.execute(
                """
                INSERT INTO email_logs (recipient, subject, email_type, status, error_message, sent_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (recipient, subject, email_type, status, error_message,
                 datetime.now(timezone.utc).isoformat()),
            )
        except Exception as e:
            logger.error(f"Failed to log email to database: {e}")

    # ==================== Delivery ====================

    def deliver(self, recipient: str, subject: str, html_body: str,
                text_body: Optional[str] = None, email_type: str = 'other') -> str:
        """
        Send one email via the configured provider.

        Returns:
            str: provider message id

        Raises:
            EmailDeliveryError: when the provider is not configured or rejects the send
        """
        if not self.sender_email:
            raise EmailDeliveryError('Sender email not configured')

        try:
            if self.provider == 'resend':
                message_id = self._send_via_resend(recipient, subject, html_body, text_body)
            else:
                message_id = self._send_via_smtp(recipient, subject, html_body, text_body)
        except EmailDeliveryError as e:
            self._log_email(recipient, subject, email_type, 'failed', e.message)
            raise
        except Exception as e:
            self._log_email(recipient, subject, email_type, 'failed', str(e))
            raise EmailDeliveryError(f"Failed to send email: {e}")

        self._log_email(recipient, subject, email_type, 'sent')
        logger.info(f"Email sent to {recipient}: {subject} ({message_id})")
        return message_id

    def send_email(self, to: List[str], subject: str, html_body: str,
                   text_body: Optional[str] = None, email_type: str = 'other') -> bool:
        """
        Send an email to multiple recipients, one at a time.

        Returns:
            bool: True if at least one email was sent successfully, False otherwise
        """
        valid_recipients = []
        for addr in to or []:
            if addr and EMAIL_REGEX.match(addr):
                valid_recipients.append(addr)
            else:
                logger.warning(f"Skipping invalid email address: {addr}")

        if not valid_recipients:
            logger.error("No valid recipients after filtering")
            return False

        sent_count = 0
        for i, recipient in enumerate(valid_recipients):
            try:
                self.deliver(recipient, subject, html_body, text_body, email_type)
                sent_count += 1
            except EmailDeliveryError as e:
                logger.error(f"Error sending to {recipient}: {e.message}")

            if i < len(valid_recipients) - 1:
                time.sleep(self.send_delay)

        return sent_count > 0

    def _send_via_resend(self, recipient: str, subject: str, html_body: str,
                         text_body: Optional[str] = None) -> str:
        """Send a single email via Resend API"""
        if not RESEND_AVAILABLE:
            raise EmailDeliveryError('resend package not installed')

        if not self.api_key:
            raise EmailDeliveryError('Resend API key not configured')

        email_params = {
            "from": formataddr((self.brand_name, self.sender_email)),
            "to": recipient,
            "subject": subject,
            "html": html_body,
            "reply_to": self.sender_email,
        }
        if text_body:
            email_params["text"] = text_body

        r = resend.Emails.send(email_params)
        if r and r.get('id'):
            return r['id']
        raise EmailDeliveryError(f"Resend error for {recipient}: {r}")

    def _send_via_smtp(self, recipient: str, subject: str, html_body: str,
                       text_body: Optional[str] = None) -> str:
        """Send a single email via SMTP with STARTTLS"""
        if not self.smtp_password:
            raise EmailDeliveryError('SMTP password not configured')

        message_id = make_msgid()
        msg = MIMEMultipart('alternative')
        msg['From'] = formataddr((self.brand_name, self.sender_email))
        msg['To'] = recipient
        msg['Reply-To'] = self.sender_email
        msg['Subject'] = subject
        msg['Message-ID'] = message_id

        if text_body:
            msg.attach(MIMEText(text_body, 'plain', 'utf-8'))
        msg.attach(MIMEText(html_body, 'html', 'utf-8'))

        with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
            server.starttls()
            server.login(self.sender_email, self.smtp_password)
            server.send_message(msg)

        return message_id

    # ==================== Message Reply ====================

    def send_reply_email(self, customer_email: str, customer_name: str,
                         reply_content: str, original_subject: str) -> bool:
        """Send an admin reply to the author of a contact message"""
        subject = f"Re: {original_subject}"
        reply_html = html.escape(reply_content).replace('\n', '<br>')

        html_body = f"""
        <div style="font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; max-width: 600px; margin: 0 auto; color: #333;">
            <div style="text-align: center; padding-bottom: 20px; border-bottom: 2px solid #007bff;">
                <h1 style="color: #007bff;">{self.brand_name}</h1>
                <p>Thank you for contacting us!</p>
            </div>

            <p>Dear <strong>{html.escape(customer_name)}</strong>,</p>
            <p>Thank you for reaching out to {self.brand_name}. We have received your message and our team has reviewed it.</p>

            <div style="background: #f8f9fa; padding: 20px; border-left: 4px solid #007bff; margin: 20px 0;">
                <h3>Our Response:</h3>
                <p>{reply_html}</p>
            </div>

            <p>If you have any further questions or need additional information, please don't hesitate to contact us.</p>

            <p style="font-style: italic; color: #6c757d;">
                Best regards,<br>
                The {self.brand_name} Team<br>
                <a href="{self.website_url}">{self.website_url}</a>
            </p>
        </div>
        """

        text_body = f"""
Dear {customer_name},

Thank you for reaching out to {self.brand_name}. We have received your message and our team has reviewed it.

Our Response:
{reply_content}

If you have any further questions or need additional information, please don't hesitate to contact us.

Best regards,
The {self.brand_name} Team
{self.website_url}
        """

        return self.send_email([customer_email], subject, html_body, text_body, email_type='message_reply')

    # ==================== Admin Notification ====================

    def send_admin_message_notification(self, message: Dict[str, Any]) -> bool:
        """Send new contact message notification to admin"""
        if not self.admin_email:
            logger.warning("Admin email not configured - skipping admin notification")
            return False

        subject = f"New Contact Form Submission: {message.get('subject', '')}"
        metadata = message.get('metadata') or {}
        optional_rows = ''
        for label, key in (('Phone', 'phone'), ('Company', 'company')):
            if message.get(key):
                optional_rows += f"<p><strong>{label}:</strong> {html.escape(message[key])}</p>"

        html_body = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2 style="color: #dc3545;">New Contact Form Submission</h2>

            <div style="background: #f8f9fa; padding: 20px; border-radius: 5px; margin: 20px 0;">
                <p><strong>Name:</strong> {html.escape(message.get('name', ''))}</p>
                <p><strong>Email:</strong> {html.escape(message.get('email', ''))}</p>
                {optional_rows}
                <p><strong>Subject:</strong> {html.escape(message.get('subject', ''))}</p>
                <p><strong>Priority:</strong> {message.get('priority', 'medium')}</p>
                <p><strong>Source:</strong> {message.get('source', 'contact')}</p>
            </div>

            <div style="background: #e9ecef; padding: 20px; border-radius: 5px; margin: 20px 0; font-style: italic;">
                {html.escape(message.get('message', '')).replace(chr(10), '<br>')}
            </div>

            <p style="color: #6c757d; font-size: 12px;">
                Submitted: {message.get('submitted_at', 'N/A')}<br>
                IP Address: {metadata.get('ip') or 'N/A'}<br>
                User Agent: {metadata.get('user_agent') or 'N/A'}<br>
                Referrer: {metadata.get('referrer') or 'N/A'}
            </p>
        </div>
        """

        text_body = strip_html(html_body)

        return self.send_email([self.admin_email], subject, html_body, text_body, email_type='admin_notification')
