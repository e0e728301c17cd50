"""
Seed Data Script - Creates a sample directory and workflow templates
Run: python -m scripts.seed_data  (from the backend directory)
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from approval_flow.repositories.base import ApprovalStore
from approval_flow.repositories.mongo_client import create_indexes
from approval_flow.repositories.mongo_store import MongoStore
from approval_flow.domain.models import ActorContext, DirectoryUser
from approval_flow.services.template_service import TemplateService
from approval_flow.utils.logger import setup_logging


SAMPLE_USERS = [
    DirectoryUser(user_id="admin", display_name="Admin", email="admin@example.com", role_name="Admin"),
    DirectoryUser(user_id="ceo", display_name="CEO", email="ceo@example.com", role_name="CEO"),
    DirectoryUser(user_id="manager", display_name="Manager", email="manager@example.com",
                  manager_id="ceo", role_name="Manager"),
    DirectoryUser(user_id="lawyer", display_name="Lawyer", email="lawyer@example.com",
                  manager_id="ceo", role_name="Lawyer"),
    DirectoryUser(user_id="finance", display_name="Finance", email="finance@example.com",
                  manager_id="ceo", role_name="Finance"),
    DirectoryUser(user_id="accountant", display_name="Accountant", email="accountant@example.com",
                  manager_id="finance", role_name="Accountant"),
    DirectoryUser(user_id="hr", display_name="HR", email="hr@example.com",
                  manager_id="ceo", role_name="HR"),
    DirectoryUser(user_id="procurement", display_name="Procurement", email="procurement@example.com",
                  manager_id="ceo", role_name="Procurement"),
    DirectoryUser(user_id="initiator", display_name="Initiator", email="initiator@example.com",
                  manager_id="manager", role_name="Employee"),
]

# Stored in the {role, label, type} form used by the first admin tooling
SAMPLE_TEMPLATES = [
    {
        "name": "Leave Request",
        "description": "Employee leave request approval workflow",
        "steps": [
            {"role": "INITIATOR_SUPERVISOR", "label": "Manager Approval", "type": "approval"},
            {"role": "HR_SPECIALIST", "label": "HR Review", "type": "approval"},
        ],
    },
    {
        "name": "Contract Approval",
        "description": "Contract review and approval process",
        "steps": [
            {"role": "INITIATOR_SUPERVISOR", "label": "Manager Review", "type": "approval"},
            {"role": "LEGAL", "label": "Legal Review", "type": "approval"},
            {"role": "CEO", "label": "CEO Approval", "type": "approval"},
        ],
    },
    {
        "name": "Payment Request",
        "description": "Payment authorization workflow",
        "steps": [
            {"role": "INITIATOR_SUPERVISOR", "label": "Manager Approval", "type": "approval"},
            {"role": "FINANCE_MANAGER", "label": "Finance Review", "type": "approval"},
            {"role": "ACCOUNTING", "label": "Accountant Processing", "type": "task"},
        ],
    },
    {
        "name": "Procurement Request",
        "description": "Purchase order approval process",
        "steps": [
            {"role": "INITIATOR_SUPERVISOR", "label": "Manager Approval", "type": "approval"},
            {"role": "PROCUREMENT", "label": "Procurement Review", "type": "approval"},
            {"role": "FINANCE_MANAGER", "label": "Budget Approval", "type": "approval"},
            {"role": "CEO", "label": "Executive Approval", "type": "approval"},
        ],
    },
    {
        "name": "Fuel Request (GSM)",
        "description": "Vehicle fuel request workflow",
        "steps": [
            {"role": "INITIATOR_SUPERVISOR", "label": "Manager Approval", "type": "approval"},
            {"role": "FINANCE_MANAGER", "label": "Finance Authorization", "type": "approval"},
        ],
    },
]


def seed_directory(store: ApprovalStore) -> int:
    """Upsert the sample directory users"""
    for user in SAMPLE_USERS:
        store.directory.upsert_user(user)
    return len(SAMPLE_USERS)


def seed_templates(store: ApprovalStore) -> int:
    """Create sample templates that do not exist yet (matched by name)"""
    service = TemplateService(store)
    existing = {template.name for template in service.list_templates()}
    admin = ActorContext(user_id="admin", display_name="Admin", roles=["Admin"])

    created = 0
    for sample in SAMPLE_TEMPLATES:
        if sample["name"] in existing:
            print(f"  - Template already exists: {sample['name']}")
            continue
        template = service.create_template(
            name=sample["name"],
            description=sample["description"],
            steps=sample["steps"],
            actor=admin
        )
        print(f"  + Created template: {template.name} ({template.template_id})")
        created += 1
    return created


def main() -> None:
    setup_logging()
    create_indexes()
    store = MongoStore()

    print("Seeding directory users...")
    print(f"  {seed_directory(store)} user(s) upserted")

    print("Seeding workflow templates...")
    print(f"  {seed_templates(store)} template(s) created")


if __name__ == "__main__":
    main()
