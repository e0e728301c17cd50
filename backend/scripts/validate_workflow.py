"""Script to check that a template can be launched by an initiator

Usage (from the backend directory):
    python -m scripts.validate_workflow TEMPLATE_ID INITIATOR_ID
"""
import argparse
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from approval_flow.repositories.mongo_store import MongoStore
from approval_flow.engine.engine import ApprovalEngine
from approval_flow.domain.errors import NotFoundError
from approval_flow.utils.logger import setup_logging


def validate_workflow(template_id: str, initiator_id: str) -> bool:
    store = MongoStore()
    engine = ApprovalEngine(store)

    try:
        template = engine.store.templates.get(template_id)
        result = engine.validate_workflow(template_id, initiator_id)
    except NotFoundError as e:
        print(f"❌ {e.message}")
        return False

    print(f"✅ Found template: {template.name}")
    print(f"   Active: {template.is_active}")
    print(f"   Steps: {len(template.steps)}")

    print("\n" + "=" * 60)
    print(f"APPROVAL CHAIN FOR {initiator_id}")
    print("=" * 60)

    for index, (step, approver_id) in enumerate(zip(template.steps, result.approvers)):
        label = step.action_label or f"Step {index + 1}"
        resolved = approver_id or "-- unresolved --"
        print(f"\n{index + 1}. [{step.step_kind.value}] {label}")
        print(f"   Assignee: {step.describe_assignee()}")
        print(f"   Approver: {resolved}")

    print("\n" + "=" * 60)
    print("VALIDATION RESULTS")
    print("=" * 60)

    if result.is_valid:
        print("\n🎉 WORKFLOW IS VALID!")
    else:
        print("\n❌ ERRORS:")
        for error in result.errors:
            print(f"   • {error}")

    if not template.is_active:
        print("\n⚠️ Template is archived: new requests will be refused")

    return result.is_valid


def main() -> None:
    parser = argparse.ArgumentParser(description="Resolve every step of a template for an initiator")
    parser.add_argument("template_id", help="Template ID, e.g. TPL-1a2b3c4d5e6f")
    parser.add_argument("initiator_id", help="Directory user ID of the initiator")
    args = parser.parse_args()

    setup_logging()
    sys.exit(0 if validate_workflow(args.template_id, args.initiator_id) else 1)


if __name__ == "__main__":
    main()
