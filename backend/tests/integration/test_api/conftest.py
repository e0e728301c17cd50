"""API test fixtures: the application wired to the seeded in-memory store"""
import pytest
from fastapi.testclient import TestClient

from approval_flow.main import create_app
from approval_flow.api.deps import get_store
from approval_flow.utils.jwt import create_token


@pytest.fixture
def client(store):
    app = create_app(use_lifespan=False)
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth():
    """Authorization headers for a seeded user: auth("ADM", "Admin")"""
    def _auth(user_id: str, *roles: str) -> dict:
        return {"Authorization": f"Bearer {create_token(user_id, user_id, list(roles))}"}
    return _auth


@pytest.fixture
def template_id(client, auth):
    response = client.post(
        "/api/v1/templates",
        json={
            "name": "Payment Request",
            "description": "Payment authorization",
            "steps": [
                {"role": "Finance", "label": "Finance Review", "type": "approval"},
                {"assignee": {"kind": "DYNAMIC", "rule": "INITIATOR_SUPERVISOR"}, "action_label": "Manager Approval"},
            ],
        },
        headers=auth("ADM", "Admin"),
    )
    assert response.status_code == 201
    return response.json()["template_id"]
