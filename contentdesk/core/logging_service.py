"""
Centralized logging service for ContentDesk.
Writes structured log rows into the app_logs table next to the stdlib logger.
"""

import json
import logging
from datetime import datetime, timedelta, timezone

from flask import request, has_request_context, current_app, has_app_context

logger = logging.getLogger(__name__)

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


def init_logs_db(database):
    database.execute_script([
        """
        CREATE TABLE IF NOT EXISTS app_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            timestamp TEXT NOT NULL,
            level TEXT NOT NULL,
            source TEXT NOT NULL,
            message TEXT NOT NULL,
            details TEXT,
            ip_address TEXT,
            user_agent TEXT,
            request_path TEXT,
            user_id TEXT
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_logs_timestamp ON app_logs(timestamp DESC)",
        "CREATE INDEX IF NOT EXISTS idx_logs_level ON app_logs(level)",
        "CREATE INDEX IF NOT EXISTS idx_logs_source ON app_logs(source)",
    ], name='app_logs')


class LoggingService:
    """Application log sink backed by the app_logs table"""

    def __init__(self, database):
        self.database = database

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None, None

        ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
        if ip_address and ',' in ip_address:
            ip_address = ip_address.split(',')[0].strip()

        return ip_address, request.headers.get('User-Agent', ''), request.path

    def log(self, level, source, message, details=None, user_id=None):
        """
        Log a message to the database

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (blog, newsletter, messages, etc.)
            message (str): Main log message
            details (str/dict): Additional details (JSON-encoded if dict)
            user_id (str): Optional user identifier
        """
        level = level.upper()
        logger.log(getattr(logging, level, logging.INFO), f"[{source}] {message}")

        ip_address, user_agent, request_path = self._get_request_context()
        if isinstance(details, (dict, list)):
            details = json.dumps(details, indent=2, default=str)

        try:
            self.database.execute(
                """
                INSERT INTO app_logs
                (timestamp, level, source, message, details, ip_address, user_agent, request_path, user_id)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    datetime.now(timezone.utc).isoformat(), level, source, message, details,
                    ip_address, user_agent, request_path,
                    str(user_id) if user_id is not None else None,
                ),
            )
        except Exception as e:
            # Fall back to the stdlib logger only
            logger.warning(f"Logging service error: {e}")
            if details:
                logger.warning(f"Details: {details}")

    def info(self, source, message, details=None, user_id=None):
        self.log('INFO', source, message, details, user_id)

    def recent(self, limit=100, level=None, source=None):
        query = "SELECT * FROM app_logs"
        clauses, params = [], []
        if level:
            clauses.append("level = ?")
            params.append(level.upper())
        if source:
            clauses.append("source = ?")
            params.append(source)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)
        return self.database.fetch_all(query, params)

    def cleanup_old_logs(self, days_to_keep=30):
        """Delete log rows older than days_to_keep, returning the count"""
        cutoff_iso = (datetime.now(timezone.utc) - timedelta(days=days_to_keep)).isoformat()
        deleted_count, _ = self.database.execute(
            "DELETE FROM app_logs WHERE timestamp < ?", (cutoff_iso,)
        )
        self.info('system', f"Cleaned up {deleted_count} old log entries")
        return deleted_count


def db_log(level, source, message, details=None, user_id=None):
    """Write through the app's LoggingService, or the stdlib logger outside an app"""
    if has_app_context():
        state = current_app.extensions.get('contentdesk')
        if state is not None:
            state.log_service.log(level, source, message, details, user_id)
            return
    logger.log(getattr(logging, level.upper(), logging.INFO), f"[{source}] {message}")
