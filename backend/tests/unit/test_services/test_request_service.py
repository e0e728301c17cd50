"""Tests for request read queries"""
import pytest

from approval_flow.domain.enums import RequestStatus, AuditAction
from approval_flow.domain.errors import PermissionDeniedError, RequestNotFoundError, ValidationError
from approval_flow.domain.models import DirectoryUser


@pytest.fixture
def template(make_template):
    return make_template()


def submit(engine, template, title="Laptop purchase", initiator="U", description=None):
    return engine.create_request(template.template_id, initiator, title, description=description).request


class TestPendingApprovals:

    def test_only_current_step_is_listed(self, engine, request_service, template):
        request = submit(engine, template)

        finance = request_service.get_pending_approvals_for_user("F")
        assert [item.request.request_id for item in finance] == [request.request_id]
        assert finance[0].approval.step_index == 0
        assert finance[0].template_name == "Payment Request"
        assert len(finance[0].template_steps) == 2

        # M is bound to step 2, which is not actionable yet
        assert request_service.get_pending_approvals_for_user("M") == []

    def test_moves_with_the_request(self, engine, request_service, template, actor):
        request = submit(engine, template)
        engine.approve(request.request_id, actor("F"))

        assert request_service.get_pending_approvals_for_user("F") == []
        manager = request_service.get_pending_approvals_for_user("M")
        assert [item.approval.step_index for item in manager] == [1]

    def test_closed_requests_are_excluded(self, engine, request_service, template, actor):
        request = submit(engine, template)
        engine.cancel_request(request.request_id, actor("U"))

        assert request_service.get_pending_approvals_for_user("F") == []

    def test_search_filters_title_description_and_template(self, engine, request_service, template):
        submit(engine, template, title="Laptop purchase")
        submit(engine, template, title="Conference travel", description="Berlin summit")

        assert len(request_service.get_pending_approvals_for_user("F", search="laptop")) == 1
        assert len(request_service.get_pending_approvals_for_user("F", search="BERLIN")) == 1
        assert len(request_service.get_pending_approvals_for_user("F", search="payment")) == 2
        assert request_service.get_pending_approvals_for_user("F", search="nothing") == []

    def test_initiator_is_joined(self, engine, request_service, template):
        submit(engine, template)

        [item] = request_service.get_pending_approvals_for_user("F")
        assert item.initiator.user_id == "U"
        assert item.initiator.display_name == "Uma Initiator"
        assert item.initiator.email == "u@example.com"

    def test_search_matches_initiator_name_and_email(self, engine, request_service, template, store):
        store.directory.upsert_user(DirectoryUser(user_id="V", display_name="Vic Requester", email="vic@corp.test", manager_id="M"))
        submit(engine, template, initiator="U")
        submit(engine, template, initiator="V")

        by_name = request_service.get_pending_approvals_for_user("F", search="uma")
        assert [item.request.initiator_id for item in by_name] == ["U"]
        by_email = request_service.get_pending_approvals_for_user("F", search="CORP.TEST")
        assert [item.request.initiator_id for item in by_email] == ["V"]


class TestMyRequests:

    def test_lists_initiator_requests_with_ledger(self, engine, request_service, template):
        mine = submit(engine, template, initiator="U")
        other = submit(engine, template, initiator="M")

        details = request_service.get_my_requests("U")
        assert [detail.request.request_id for detail in details] == [mine.request_id]
        assert [entry.approver_id for entry in details[0].approvals] == ["F", "M"]
        assert other.initiator_id == "M"

    def test_search(self, engine, request_service, template):
        submit(engine, template, title="Laptop purchase")
        submit(engine, template, title="Desk chair")

        assert [d.request.title for d in request_service.get_my_requests("U", search="chair")] == ["Desk chair"]


class TestListRequests:

    def test_pagination(self, engine, request_service, template):
        for index in range(5):
            submit(engine, template, title=f"Request {index}")

        page = request_service.list_requests(page=2, limit=2)
        assert page.total_count == 5
        assert page.total_pages == 3
        assert page.page == 2
        assert len(page.requests) == 2

        last = request_service.list_requests(page=3, limit=2)
        assert len(last.requests) == 1

    def test_status_filter(self, engine, request_service, template, actor):
        kept = submit(engine, template)
        cancelled = submit(engine, template)
        engine.cancel_request(cancelled.request_id, actor("U"))

        page = request_service.list_requests(status=RequestStatus.CANCELLED)
        assert [d.request.request_id for d in page.requests] == [cancelled.request_id]
        assert request_service.list_requests(status=RequestStatus.PENDING).requests[0].request.request_id == kept.request_id

    def test_empty(self, request_service):
        page = request_service.list_requests()
        assert page.total_count == 0
        assert page.total_pages == 0
        assert page.requests == []

    @pytest.mark.parametrize("page, limit", [(0, 20), (1, 0), (1, 101)])
    def test_invalid_pagination(self, request_service, page, limit):
        with pytest.raises(ValidationError):
            request_service.list_requests(page=page, limit=limit)


class TestDetailAndAudit:

    def test_get_request(self, engine, request_service, template, actor):
        request = submit(engine, template)
        detail = request_service.get_request(request.request_id, actor("U"))
        assert detail.request == request
        assert [entry.step_index for entry in detail.approvals] == [0, 1]

    def test_audit_trail_newest_first(self, engine, request_service, template, actor):
        request = submit(engine, template)
        engine.add_comment(request.request_id, actor("U"), "Please hurry")

        trail = request_service.get_audit_trail(request.request_id, actor("U"))
        assert [event.action for event in trail] == [AuditAction.COMMENT_ADDED, AuditAction.CREATED]

    def test_unknown_request(self, request_service, admin):
        with pytest.raises(RequestNotFoundError):
            request_service.get_request("REQ-missing", admin)
        with pytest.raises(RequestNotFoundError):
            request_service.get_audit_trail("REQ-missing", admin)

    @pytest.mark.parametrize("user_id, roles", [
        ("U", ()),
        ("F", ()),
        ("M", ()),
        ("ADM", ("Admin",)),
    ])
    def test_participants_and_admins_can_read(self, engine, request_service, template, actor, user_id, roles):
        request = submit(engine, template)
        reader = actor(user_id, *roles)

        assert request_service.get_request(request.request_id, reader).request.request_id == request.request_id
        assert request_service.get_audit_trail(request.request_id, reader)

    def test_outsiders_cannot_read(self, engine, request_service, template, actor):
        request = submit(engine, template)

        with pytest.raises(PermissionDeniedError):
            request_service.get_request(request.request_id, actor("NOMGR"))
        with pytest.raises(PermissionDeniedError):
            request_service.get_audit_trail(request.request_id, actor("CEO"))
