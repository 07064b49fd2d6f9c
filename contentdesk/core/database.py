import os
import sqlite3
import logging
from contextlib import contextmanager

logger = logging.getLogger(__name__)


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


class Database:
    """
    Thin SQLite handle shared by every repository.

    Constructed once per app by ContentDesk.init_app and stored on
    app.extensions; each call to connection() opens a short-lived
    connection that commits on success and rolls back on error.
    """

    def __init__(self, path):
        self.path = path

    def ensure_directory(self):
        db_dir = os.path.dirname(self.path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    @contextmanager
    def connection(self):
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        # SQLite lower() and LIKE only fold ASCII
        conn.create_function('unicode_lower', 1, _unicode_lower, deterministic=True)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def execute_script(self, statements, name='schema'):
        """Run a list of DDL statements in one transaction"""
        self.ensure_directory()
        with self.connection() as conn:
            cursor = conn.cursor()
            for statement in statements:
                cursor.execute(statement)
        logger.info(f"{name} tables created/verified successfully")

    def fetch_one(self, query, params=()):
        with self.connection() as conn:
            row = conn.execute(query, params).fetchone()
            return dict(row) if row else None

    def fetch_all(self, query, params=()):
        with self.connection() as conn:
            return [dict(row) for row in conn.execute(query, params).fetchall()]

    def scalar(self, query, params=()):
        with self.connection() as conn:
            row = conn.execute(query, params).fetchone()
            return row[0] if row else None

    def execute(self, query, params=()):
        """Run one write statement, returning (rowcount, lastrowid)"""
        with self.connection() as conn:
            cursor = conn.execute(query, params)
            return cursor.rowcount, cursor.lastrowid

    def execute_many(self, query, seq_of_params):
        with self.connection() as conn:
            cursor = conn.executemany(query, seq_of_params)
            return cursor.rowcount
