"""Subscriber lifecycle, bulk actions, stats and CSV export."""

import csv
import io


def _subscribe(client, email, **extra):
    return client.post("/api/newsletter", json={"email": email, **extra},
                       headers={"User-Agent": "pytest-agent"})


def test_public_subscribe_records_metadata(client, auth):
    response = _subscribe(client, "Reader@Example.com", name="Reader", tags="news, tips")
    assert response.status_code == 201
    subscriber = response.get_json()["data"]["subscriber"]

    assert subscriber["email"] == "reader@example.com"
    assert subscriber["status"] == "active"
    assert subscriber["source"] == "website"
    assert subscriber["tags"] == ["news", "tips"]
    assert subscriber["metadata"]["user_agent"] == "pytest-agent"


def test_public_subscribe_ignores_status(client, auth):
    response = _subscribe(client, "sneaky@example.com", status="unsubscribed")
    assert response.status_code == 201
    subscriber = response.get_json()["data"]["subscriber"]
    assert subscriber["status"] == "active"
    assert subscriber["unsubscribed_at"] is None

    response = _subscribe(client, "odd@example.com", status="nonsense")
    assert response.get_json()["data"]["subscriber"]["status"] == "active"


def test_duplicate_subscribe_leaves_one_row(client, auth, database):
    assert _subscribe(client, "dup@example.com").status_code == 201
    response = _subscribe(client, "DUP@example.com")

    assert response.status_code == 400
    assert response.get_json()["message"] == "Email is already subscribed"
    count = database.scalar(
        "SELECT COUNT(*) FROM newsletter_subscribers WHERE email = ?", ("dup@example.com",)
    )
    assert count == 1


def test_invalid_email_rejected(client):
    response = _subscribe(client, "not-an-email")
    assert response.status_code == 400
    assert response.get_json()["message"] == "Please enter a valid email address"


def test_update_to_unsubscribed_stamps_timestamp(client, auth):
    sub = _subscribe(client, "a@example.com").get_json()["data"]["subscriber"]
    assert sub["unsubscribed_at"] is None

    response = client.put(f"/api/newsletter/{sub['id']}", json={"status": "unsubscribed"}, headers=auth)
    assert response.status_code == 200
    assert response.get_json()["data"]["subscriber"]["unsubscribed_at"]


def test_update_email_conflict(client, auth):
    _subscribe(client, "a@example.com")
    b = _subscribe(client, "b@example.com").get_json()["data"]["subscriber"]

    response = client.put(f"/api/newsletter/{b['id']}", json={"email": "a@example.com"}, headers=auth)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Email already exists in another subscription"


def test_bulk_subscribe_reports_skipped(client, auth):
    _subscribe(client, "existing@example.com")
    response = client.post("/api/newsletter/bulk", json={
        "action": "subscribe",
        "emails": ["existing@example.com", "new1@example.com", "NEW2@example.com"],
        "data": {"source": "import"},
    }, headers=auth)

    assert response.status_code == 200
    result = response.get_json()["data"]["result"]
    assert result["inserted"] == 2
    assert result["skipped"] == 1


def test_bulk_unsubscribe_and_delete(client, auth):
    emails = [f"user{i}@example.com" for i in range(4)]
    for email in emails:
        _subscribe(client, email)

    response = client.post("/api/newsletter/bulk", json={"action": "unsubscribe", "emails": emails[:2]},
                           headers=auth)
    assert response.get_json()["data"]["result"]["affected"] == 2

    stats = client.get("/api/newsletter/stats", headers=auth).get_json()["data"]
    assert stats["by_status"]["unsubscribed"] == 2
    assert stats["by_status"]["active"] == 2

    before = client.get("/api/newsletter", headers=auth).get_json()["data"]["pagination"]["total"]
    client.post("/api/newsletter/bulk", json={"action": "delete", "emails": emails[1:3]}, headers=auth)
    after = client.get("/api/newsletter", headers=auth).get_json()["data"]["pagination"]["total"]
    assert before - after == 2


def test_bulk_unknown_action(client, auth):
    response = client.post("/api/newsletter/bulk", json={"action": "explode", "emails": ["a@example.com"]},
                           headers=auth)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Invalid bulk action"


def test_bulk_requires_emails(client, auth):
    response = client.post("/api/newsletter/bulk", json={"action": "delete", "emails": []}, headers=auth)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Invalid bulk operation parameters"


def test_export_csv_row_count_matches_filtered_total(client, auth):
    for i in range(3):
        _subscribe(client, f"keep{i}@example.com", name=f'Name "{i}"')
    gone = _subscribe(client, "gone@example.com").get_json()["data"]["subscriber"]
    client.put(f"/api/newsletter/{gone['id']}", json={"status": "bounced"}, headers=auth)

    total = client.get("/api/newsletter?status=active", headers=auth).get_json()["data"]["pagination"]["total"]
    response = client.get("/api/newsletter/export?status=active", headers=auth)

    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    assert "attachment" in response.headers["Content-Disposition"]
    rows = list(csv.reader(io.StringIO(response.get_data(as_text=True))))
    assert rows[0][0] == "Email"
    assert len(rows) - 1 == total == 3


def test_stats_shape(client, auth):
    _subscribe(client, "s@example.com")
    stats = client.get("/api/newsletter/stats", headers=auth).get_json()["data"]
    assert stats["total"] == 1
    assert set(stats["by_status"]) == {"active", "unsubscribed", "bounced"}
    assert stats["by_source"]["website"] == 1
    assert len(stats["recent"]) == 1


def test_search_folds_non_ascii_case(client, auth):
    _subscribe(client, "emile@example.com", name="Émile Zola")
    _subscribe(client, "other@example.com", name="Other")

    for term in ("émile", "ÉMILE", "zola"):
        data = client.get("/api/newsletter", query_string={"search": term}, headers=auth).get_json()["data"]
        assert [s["email"] for s in data["items"]] == ["emile@example.com"]

    data = client.get("/api/newsletter", query_string={"search": "100%"}, headers=auth).get_json()["data"]
    assert data["items"] == []
