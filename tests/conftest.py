"""
Shared fixtures for the ContentDesk test suite.

Run with: pytest tests/ -v

NOTE: pytest is listed under extras_require["dev"] in setup.py.
Install with: pip install -e ".[dev]"
"""

import os
import shutil
import tempfile
from unittest.mock import MagicMock

import pytest
from flask import Flask

from contentdesk import ContentDesk


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="contentdesk-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def email_service():
    """Stand-in for EmailService; every send succeeds."""
    svc = MagicMock()
    svc.deliver.return_value = "msg-id"
    svc.send_email.return_value = True
    svc.send_reply_email.return_value = True
    svc.send_admin_message_notification.return_value = True
    return svc


@pytest.fixture
def app(tmp_db_dir, email_service):
    """Fully initialised Flask app with every ContentDesk module registered."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["JWT_SECRET_KEY"] = "test-jwt-secret-with-enough-length-for-hs256"
    app.config["DB_DIR"] = tmp_db_dir
    app.config["UPLOAD_FOLDER"] = os.path.join(tmp_db_dir, "uploads")
    app.config["CAMPAIGN_SEND_DELAY"] = 0
    ContentDesk(app, {"email_service": email_service})
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def database(app):
    return app.extensions["contentdesk"].database


@pytest.fixture
def admin_token(client):
    """Register the first account (always admin) and return its token."""
    response = client.post("/api/auth/register", json={
        "name": "Admin User",
        "email": "admin@example.com",
        "password": "Secret123",
    })
    assert response.status_code == 201, response.get_json()
    return response.get_json()["data"]["token"]


@pytest.fixture
def auth(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def category(client, auth):
    response = client.post("/api/categories", json={"name": "Web Design"}, headers=auth)
    return response.get_json()["data"]["category"]


@pytest.fixture
def tag(client, auth):
    response = client.post("/api/tags", json={"name": "Flask"}, headers=auth)
    return response.get_json()["data"]["tag"]
