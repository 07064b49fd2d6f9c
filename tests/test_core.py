"""Extension wiring, config resolution, error envelopes and the log sink."""

import os
import shutil
import tempfile
from unittest.mock import MagicMock

from flask import Flask

from contentdesk import ContentDesk
from contentdesk.core import LoggingService
from contentdesk.core.resource import render_csv

EXPECTED_MODULES = [
    "auth", "blog", "projects", "services", "taxonomy",
    "newsletter", "messages", "upload", "analytics", "health",
]


def test_extension_stored_on_app(app):
    ext = app.extensions["contentdesk"]
    assert isinstance(ext, ContentDesk)
    assert ext.database is not None
    assert ext.log_service is not None
    assert ext.get_registered_modules() == EXPECTED_MODULES


def test_database_path_derived_from_db_dir(app, tmp_db_dir):
    assert app.config["DATABASE_PATH"] == os.path.join(tmp_db_dir, "contentdesk.db")
    assert os.path.isfile(app.config["DATABASE_PATH"])


def test_app_config_takes_precedence(app):
    assert app.config["SECRET_KEY"] == "test-secret"
    assert app.config["CAMPAIGN_SEND_DELAY"] == 0
    # filled in from Config
    assert app.config["MAX_PAGE_LIMIT"] == 100
    assert app.config["MAX_CONTENT_LENGTH"] == 16 * 1024 * 1024
    assert app.config["EMAIL_SEND_DELAY"] == 0.6


def test_features_can_be_disabled():
    d = tempfile.mkdtemp(prefix="contentdesk-dbtest-")
    try:
        app = Flask(__name__)
        app.config["DB_DIR"] = os.path.join(d, "sub", "databases")
        ext = ContentDesk(app, {"features": {"upload": False, "analytics": False},
                                "email_service": MagicMock()})

        assert "upload" not in ext.get_registered_modules()
        rules = [rule.rule for rule in app.url_map.iter_rules()]
        assert "/api/upload/image" not in rules
        assert "/api/blogposts" in rules
        assert os.path.isdir(app.config["DB_DIR"])
    finally:
        shutil.rmtree(d, ignore_errors=True)


def test_unknown_route_envelope(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.get_json() == {"success": False, "message": "Route not found"}


def test_method_not_allowed_envelope(client):
    response = client.patch("/api/health")
    assert response.status_code == 405
    assert response.get_json()["success"] is False


def test_pagination_limit_is_capped(client, auth):
    data = client.get("/api/tags?limit=1000", headers=auth).get_json()["data"]
    assert data["pagination"]["limit"] == 100


def test_log_service_writes_and_cleans(app, database):
    logs = LoggingService(database)
    with app.app_context():
        logs.info("test", "hello", {"k": 1})
        logs.log("error", "test", "boom")

    rows = logs.recent(limit=10, source="test")
    assert [row["message"] for row in rows] == ["boom", "hello"]
    assert logs.recent(limit=10, level="error")[0]["level"] == "ERROR"
    assert logs.cleanup_old_logs(days_to_keep=0) >= 2


def test_render_csv_quotes_everything():
    text = render_csv(["A", "B"], [['say "hi"', None]])
    assert text == '"A","B"\n"say ""hi""",""\n'
