"""
Pytest Configuration and Fixtures

Shared fixtures: an in-memory store seeded with a small directory, the
engine and services wired to it, and actor contexts for each seeded user.

Directory:
    U    - initiator, reports to M
    M    - manager, reports to CEO
    CEO  - top of the chain
    F    - holds role "Finance", reports to CEO
    NOMGR - no manager
    ADM  - holds role "Admin"
"""

import pytest
from typing import Any, Dict, List

from approval_flow.config.settings import Settings
from approval_flow.domain.models import ActorContext, DirectoryUser, WorkflowTemplate
from approval_flow.repositories.memory_store import InMemoryStore
from approval_flow.engine.engine import ApprovalEngine
from approval_flow.services.template_service import TemplateService
from approval_flow.services.request_service import RequestService
from approval_flow.services.directory_service import DirectoryService


DIRECTORY = [
    DirectoryUser(user_id="U", display_name="Uma Initiator", email="u@example.com", manager_id="M"),
    DirectoryUser(user_id="M", display_name="Max Manager", email="m@example.com", manager_id="CEO", role_name="Manager"),
    DirectoryUser(user_id="CEO", display_name="Cleo Chief", email="ceo@example.com", role_name="CEO"),
    DirectoryUser(user_id="F", display_name="Fin Ance", email="f@example.com", manager_id="CEO", role_name="Finance"),
    DirectoryUser(user_id="NOMGR", display_name="Nora Nomanager", email="n@example.com"),
    DirectoryUser(user_id="ADM", display_name="Ada Admin", email="adm@example.com", role_name="Admin"),
]

FINANCE_THEN_SUPERVISOR: List[Dict[str, Any]] = [
    {"assignee": {"kind": "ROLE_BASED", "role_name": "Finance"}, "action_label": "Finance Review"},
    {"assignee": {"kind": "DYNAMIC", "rule": "INITIATOR_SUPERVISOR"}, "action_label": "Manager Approval"},
]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt_secret="test-secret",
        jwt_algorithm="HS256",
        admin_role_name="Admin",
        hierarchy_max_depth=25,
    )


@pytest.fixture
def store() -> InMemoryStore:
    store = InMemoryStore()
    for user in DIRECTORY:
        store.directory.upsert_user(user)
    return store


@pytest.fixture
def engine(store, settings) -> ApprovalEngine:
    return ApprovalEngine(store, settings)


@pytest.fixture
def template_service(store) -> TemplateService:
    return TemplateService(store)


@pytest.fixture
def request_service(store, settings) -> RequestService:
    return RequestService(store, settings)


@pytest.fixture
def directory_service(store) -> DirectoryService:
    return DirectoryService(store, max_depth=25)


@pytest.fixture
def actor():
    """Build an actor context for a seeded user: actor("F")"""
    def _actor(user_id: str, *roles: str) -> ActorContext:
        return ActorContext(user_id=user_id, display_name=user_id, roles=list(roles))
    return _actor


@pytest.fixture
def admin(actor) -> ActorContext:
    return actor("ADM", "Admin")


@pytest.fixture
def make_template(template_service, admin):
    """Create a template; defaults to the Finance -> supervisor chain"""
    def _make(steps=None, name: str = "Payment Request") -> WorkflowTemplate:
        return template_service.create_template(
            name=name,
            description="Payment authorization",
            steps=steps if steps is not None else FINANCE_THEN_SUPERVISOR,
            actor=admin,
        )
    return _make
