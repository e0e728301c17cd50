"""Template endpoints"""


def test_requires_token(client):
    response = client.get("/api/v1/templates")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTHENTICATION_ERROR"


def test_invalid_token(client):
    response = client.get("/api/v1/templates", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


def test_create_requires_admin(client, auth):
    response = client.post("/api/v1/templates", json={"name": "x", "steps": []}, headers=auth("U"))
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "PERMISSION_DENIED"


def test_create_and_get(client, auth, template_id):
    response = client.get(f"/api/v1/templates/{template_id}", headers=auth("U"))
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Payment Request"
    assert body["is_active"] is True
    assert body["steps"][0]["assignee"] == {"kind": "ROLE_BASED", "role_name": "Finance"}
    assert body["steps"][1]["assignee"] == {"kind": "DYNAMIC", "rule": "INITIATOR_SUPERVISOR"}


def test_malformed_steps_are_listed(client, auth):
    response = client.post(
        "/api/v1/templates",
        json={
            "name": "Broken",
            "steps": [
                {"assignee": {"kind": "ROLE_BASED", "role_name": ""}},
                {"assignee": {"kind": "DYNAMIC", "rule": "NOBODY"}},
            ],
        },
        headers=auth("ADM", "Admin"),
    )
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "TEMPLATE_VALIDATION_ERROR"
    assert len(error["details"]["errors"]) == 2


def test_update(client, auth, template_id):
    response = client.put(
        f"/api/v1/templates/{template_id}",
        json={"name": "Payment Request v2"},
        headers=auth("ADM", "Admin"),
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Payment Request v2"
    assert len(response.json()["steps"]) == 2


def test_archive_restore_cycle(client, auth, template_id):
    admin = auth("ADM", "Admin")

    archived = client.post(f"/api/v1/templates/{template_id}/archive", json={"reason": "Old"}, headers=admin)
    assert archived.status_code == 200
    assert archived.json()["is_active"] is False

    again = client.post(f"/api/v1/templates/{template_id}/archive", headers=admin)
    assert again.status_code == 409

    listed = client.get("/api/v1/templates", params={"active_only": True}, headers=admin)
    assert listed.json() == []

    restored = client.post(f"/api/v1/templates/{template_id}/restore", headers=admin)
    assert restored.status_code == 200
    assert restored.json()["is_active"] is True


def test_unknown_template(client, auth):
    response = client.get("/api/v1/templates/TPL-missing", headers=auth("U"))
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "TEMPLATE_NOT_FOUND"


def test_directory_endpoints(client, auth):
    roles = client.get("/api/v1/directory/roles", headers=auth("U"))
    assert roles.json() == ["Admin", "CEO", "Finance", "Manager"]

    chain = client.get("/api/v1/directory/users/U/hierarchy", headers=auth("U"))
    assert [node["user_id"] for node in chain.json()] == ["U", "M", "CEO"]

    missing = client.get("/api/v1/directory/users/GHOST/hierarchy", headers=auth("U"))
    assert missing.status_code == 404


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["store"]["database"] == "memory"
    assert "X-Correlation-Id" in response.headers
