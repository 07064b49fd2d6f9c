"""Contact inbox: public submission, replies, bulk actions and export."""

import csv
import io


def _send_message(client, email="visitor@example.com", **overrides):
    body = {
        "name": "Visitor",
        "email": email,
        "subject": "Quote request",
        "message": "Could you build us a site?",
    }
    body.update(overrides)
    return client.post("/api/messages", json=body)


def test_public_submission_notifies_admin(client, email_service):
    response = _send_message(client, phone="0123", source="quote")
    assert response.status_code == 201
    message = response.get_json()["data"]["message"]

    assert message["status"] == "unread"
    assert message["priority"] == "medium"
    assert message["source"] == "quote"
    assert message["reply"] is None
    email_service.send_admin_message_notification.assert_called_once()


def test_notification_failure_does_not_fail_request(client, email_service):
    email_service.send_admin_message_notification.side_effect = RuntimeError("smtp down")
    assert _send_message(client).status_code == 201


def test_submission_validation(client):
    response = _send_message(client, subject="")
    assert response.status_code == 400
    assert response.get_json()["message"] == "Subject is required"

    response = _send_message(client, message="x" * 2001)
    assert response.status_code == 400
    assert "2000 characters" in response.get_json()["message"]


def test_public_submission_ignores_priority(client, auth):
    response = _send_message(client, priority="high")
    assert response.status_code == 201
    message = response.get_json()["data"]["message"]
    assert message["priority"] == "medium"

    assert _send_message(client, email="other@example.com", priority="urgent").status_code == 201

    response = client.put(f"/api/messages/{message['id']}", json={"priority": "high"}, headers=auth)
    assert response.get_json()["data"]["message"]["priority"] == "high"


def test_duplicate_sender_email_is_conflict(client):
    assert _send_message(client).status_code == 201
    response = _send_message(client)
    assert response.status_code == 400
    assert response.get_json()["message"] == "A message from this email already exists"


def test_reply_sets_replied_status_and_sends_email(client, auth, email_service):
    message = _send_message(client).get_json()["data"]["message"]

    response = client.put(f"/api/messages/{message['id']}", json={
        "reply": {"content": "Happy to help!"},
    }, headers=auth)

    assert response.status_code == 200
    updated = response.get_json()["data"]["message"]
    assert updated["status"] == "replied"
    assert updated["reply"]["content"] == "Happy to help!"
    assert updated["reply"]["replied_at"]
    assert updated["reply"]["replied_by"]["email"] == "admin@example.com"
    email_service.send_reply_email.assert_called_once_with(
        "visitor@example.com", "Visitor", "Happy to help!", "Quote request"
    )


def test_reply_email_failure_still_saves_reply(client, auth, email_service):
    email_service.send_reply_email.side_effect = RuntimeError("smtp down")
    message = _send_message(client).get_json()["data"]["message"]

    response = client.put(f"/api/messages/{message['id']}", json={"reply": {"content": "Hi"}}, headers=auth)
    assert response.status_code == 200
    assert response.get_json()["data"]["message"]["status"] == "replied"


def test_assign_populates_user(client, auth):
    message = _send_message(client).get_json()["data"]["message"]
    profile = client.get("/api/auth/profile", headers=auth).get_json()["data"]["user"]

    response = client.put(f"/api/messages/{message['id']}", json={"assigned_to": profile["id"]}, headers=auth)
    assert response.get_json()["data"]["message"]["assigned_to"] == {
        "id": profile["id"], "name": "Admin User", "email": "admin@example.com",
    }

    response = client.put(f"/api/messages/{message['id']}", json={"assigned_to": 999}, headers=auth)
    assert response.status_code == 400
    assert response.get_json()["message"] == "User not found"


def test_bulk_status_actions(client, auth):
    ids = [_send_message(client, email=f"v{i}@example.com").get_json()["data"]["message"]["id"]
           for i in range(3)]

    response = client.post("/api/messages/bulk", json={"action": "markRead", "ids": ids[:2]}, headers=auth)
    assert response.get_json()["data"]["result"]["affected"] == 2

    stats = client.get("/api/messages/stats", headers=auth).get_json()["data"]
    assert stats["by_status"]["read"] == 2
    assert stats["by_status"]["unread"] == 1


def test_bulk_delete_lowers_total(client, auth):
    ids = [_send_message(client, email=f"v{i}@example.com").get_json()["data"]["message"]["id"]
           for i in range(5)]
    before = client.get("/api/messages", headers=auth).get_json()["data"]["pagination"]["total"]

    client.post("/api/messages/bulk", json={"action": "delete", "ids": ids[:3]}, headers=auth)

    after = client.get("/api/messages", headers=auth).get_json()["data"]["pagination"]["total"]
    assert before - after == 3


def test_bulk_assign_requires_assignee(client, auth):
    message = _send_message(client).get_json()["data"]["message"]
    response = client.post("/api/messages/bulk", json={"action": "assign", "ids": [message["id"]]}, headers=auth)
    assert response.status_code == 400


def test_export_csv_row_count_matches_filtered_total(client, auth):
    for i in range(4):
        message = _send_message(client, email=f"v{i}@example.com",
                                message='Line with "quotes", commas\nand a newline').get_json()["data"]["message"]
        client.put(f"/api/messages/{message['id']}", json={"priority": "high" if i % 2 else "low"}, headers=auth)

    total = client.get("/api/messages?priority=high", headers=auth).get_json()["data"]["pagination"]["total"]
    response = client.get("/api/messages/export?priority=high", headers=auth)

    rows = list(csv.reader(io.StringIO(response.get_data(as_text=True))))
    assert rows[0][0] == "Name"
    assert len(rows) - 1 == total == 2


def test_stats_shape(client, auth):
    _send_message(client)
    stats = client.get("/api/messages/stats", headers=auth).get_json()["data"]
    assert stats["total"] == 1
    assert set(stats["by_priority"]) == {"low", "medium", "high"}
    assert stats["by_source"]["contact"] == 1
    assert stats["recent"][0]["email"] == "visitor@example.com"
