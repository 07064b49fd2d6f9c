"""Services and the projects that reference them."""


def _create_service(client, auth, name="Web Development"):
    response = client.post("/api/services", json={"name": name, "icon": "code"}, headers=auth)
    assert response.status_code == 201
    return response.get_json()["data"]["service"]


def _project_body(**overrides):
    body = {
        "title": "Acme Storefront",
        "description": "E-commerce rebuild",
        "client_name": "Acme Ltd",
        "completed_date": "2024-05-01",
        "location": "London",
        "content": "<p>Case study</p>",
    }
    body.update(overrides)
    return body


def test_service_defaults_and_filter(client, auth):
    service = _create_service(client, auth)
    assert service["active"] is True
    assert service["slug"] == "web-development"

    inactive = _create_service(client, auth, "Legacy Support")
    client.put(f"/api/services/{inactive['id']}", json={"active": False}, headers=auth)

    data = client.get("/api/services?active=true", headers=auth).get_json()["data"]
    assert [s["name"] for s in data["items"]] == ["Web Development"]


def test_service_name_required(client, auth):
    response = client.post("/api/services", json={"icon": "x"}, headers=auth)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Service name is required"


def test_project_populates_services(client, auth):
    service = _create_service(client, auth)
    response = client.post("/api/projects", json=_project_body(services=[service["id"]]), headers=auth)
    assert response.status_code == 201
    project = response.get_json()["data"]["project"]

    assert project["slug"] == "acme-storefront"
    assert project["services"] == [{"id": service["id"], "name": "Web Development", "slug": "web-development"}]
    assert project["completed_date"].startswith("2024-05-01")


def test_project_missing_required_field(client, auth):
    body = _project_body()
    del body["location"]
    response = client.post("/api/projects", json=body, headers=auth)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Location is required"


def test_project_unknown_service(client, auth):
    response = client.post("/api/projects", json=_project_body(services="42"), headers=auth)
    assert response.status_code == 400
    assert response.get_json()["field"] == "services"


def test_project_update_and_delete(client, auth):
    project = client.post("/api/projects", json=_project_body(), headers=auth).get_json()["data"]["project"]

    response = client.put(f"/api/projects/{project['id']}", json={"title": "Acme Relaunch"}, headers=auth)
    assert response.get_json()["data"]["project"]["slug"] == "acme-relaunch"

    assert client.delete(f"/api/projects/{project['id']}", headers=auth).status_code == 200
    assert client.get(f"/api/projects/{project['id']}", headers=auth).status_code == 404
