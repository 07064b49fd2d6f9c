"""Analytics overview, activity and health check."""

from contentdesk.modules.analytics.analytics import Analytics


def test_overview_counts_and_metrics(client, auth):
    for i in range(3):
        client.post("/api/newsletter", json={"email": f"n{i}@example.com"})
    gone = client.post("/api/newsletter", json={"email": "u@example.com"}).get_json()["data"]["subscriber"]
    client.put(f"/api/newsletter/{gone['id']}", json={"status": "unsubscribed"}, headers=auth)
    message = client.post("/api/messages", json={
        "name": "V", "email": "v@example.com", "subject": "S", "message": "M",
    }).get_json()["data"]["message"]
    client.post("/api/messages", json={"name": "W", "email": "w@example.com", "subject": "S", "message": "M"})
    client.put(f"/api/messages/{message['id']}", json={"reply": {"content": "Thanks"}}, headers=auth)

    response = client.get("/api/analytics/overview?time_range=7d", headers=auth)
    assert response.status_code == 200
    data = response.get_json()["data"]

    assert data["time_range"] == "7d"
    assert data["newsletter"]["total"] == 4
    assert data["newsletter"]["new"] == 4
    assert sum(day["count"] for day in data["newsletter"]["trend"]) == 4
    assert data["messages"]["by_status"]["replied"] == 1
    assert data["metrics"]["engagement_rate"] == 75.0
    assert data["metrics"]["response_rate"] == 50.0
    assert data["metrics"]["total_interactions"] == 6


def test_overview_empty_database(client, auth):
    data = client.get("/api/analytics/overview", headers=auth).get_json()["data"]
    assert data["time_range"] == "30d"
    assert data["metrics"] == {
        "engagement_rate": 0, "response_rate": 0, "total_interactions": 0, "growth_rate": 0,
    }


def test_unknown_range_falls_back_to_30d(client, auth):
    for path in ("/api/analytics/overview", "/api/analytics/activity"):
        response = client.get(f"{path}?time_range=5y", headers=auth)
        assert response.status_code == 200
        assert response.get_json()["data"]["time_range"] == "30d"


def test_activity_counts_and_top_sources(client, auth):
    sources = ["website"] * 3 + ["import"] * 2 + ["admin"]
    for i, source in enumerate(sources):
        client.post("/api/newsletter", json={"email": f"a{i}@example.com", "source": source})
    client.post("/api/messages", json={
        "name": "V", "email": "v@example.com", "subject": "S", "message": "M",
        "submitted_at": "2001-01-01T00:00:00+00:00",
    })
    client.post("/api/messages", json={"name": "W", "email": "w@example.com", "subject": "S", "message": "M"})

    response = client.get("/api/analytics/activity?time_range=7d", headers=auth)
    assert response.status_code == 200
    data = response.get_json()["data"]

    assert data["time_range"] == "7d"
    assert data["newsletter_signups"] == 6
    assert data["message_submissions"] == 1
    assert sum(day["count"] for day in data["daily_activity"]["signups"]) == 6
    assert sum(day["count"] for day in data["daily_activity"]["submissions"]) == 1
    assert data["top_sources"] == [
        {"source": "website", "count": 3},
        {"source": "import", "count": 2},
        {"source": "admin", "count": 1},
    ]


def test_activity_top_sources_are_limited(app, database):
    for i, source in enumerate(["website", "website", "import", "admin"]):
        database.execute(
            "INSERT INTO newsletter_subscribers (email, source, subscribed_at, created_at, updated_at)"
            " VALUES (?, ?, datetime('now'), datetime('now'), datetime('now'))",
            (f"s{i}@example.com", source),
        )
    top = Analytics(database).activity("30d", top_limit=2)["top_sources"]
    assert top == [{"source": "website", "count": 2}, {"source": "admin", "count": 1}]


def test_activity_requires_token(client):
    assert client.get("/api/analytics/activity").status_code == 401


def test_health_is_public(client):
    response = client.get("/api/health")
    assert response.status_code in (200, 503)
    data = response.get_json()
    assert data["checks"]["database"]["ok"] is True
    assert "disk" in data["checks"]
