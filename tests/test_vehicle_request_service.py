from datetime import date

import pytest

from app.database.models.vehicle_request import VehicleApproval
from app.database.services.vehicle_request_service import VehicleRequestService
from app.logic.exceptions import (
    AuthorizationError,
    InvalidStatusError,
    NoApproverFoundError,
    RequestNotFoundError,
    ValidationError,
)
from app.ReqResModels.vehiclerequestmodels import (
    ApproveVehicleRequest,
    AssignVehicleRequest,
    CreateVehicleRequest,
    UpdateVehicleRequest,
    VehicleReasonRequest,
    VehicleRequestQueryParams,
)
from tests.factories import add_workflow

TWO_STEPS = [
    {"step_order": 1, "step_name": "Department Approval", "approver_role": "department_approver",
     "requires_same_department": True, "status_on_approval": "department_approved"},
    {"step_order": 2, "step_name": "IT Manager Approval", "approver_role": "it_manager",
     "status_on_approval": "it_manager_approved", "status_on_completion": "completed"},
]


@pytest.fixture
def vehicle_workflow(db, users):
    return add_workflow(db, "vehicle_request", users.admin, TWO_STEPS)


def create_draft(db, users, **fields):
    payload = CreateVehicleRequest(
        actor_id=users.requestor.id,
        request_type="drop_passenger",
        destination="Airport",
        travel_date_from=date(2026, 11, 2),
        travel_date_to=date(2026, 11, 2),
        **fields,
    )
    return VehicleRequestService.create_request(db, payload)


def submitted(db, users):
    draft = create_draft(db, users)
    VehicleRequestService.submit_request(db, draft.id, users.requestor.id)
    return draft


def approve(db, request_id, user, remarks=None):
    return VehicleRequestService.approve_request(
        db, request_id, ApproveVehicleRequest(actor_id=user.id, remarks=remarks)
    )


def assign(db, request_id, user, approval_date=date(2026, 11, 1)):
    return VehicleRequestService.assign_vehicle(db, request_id, AssignVehicleRequest(
        actor_id=user.id, assigned_driver="Dan Driver", assigned_vehicle="Van 7", approval_date=approval_date
    ))


def step_record(db, request_id, step_order):
    return db.query(VehicleApproval).filter(
        VehicleApproval.vehicle_request_id == request_id, VehicleApproval.step_order == step_order
    ).one()


class TestDrafts:
    def test_create_defaults(self, db, users):
        draft = create_draft(db, users)
        assert draft.status == "draft"
        assert draft.reference_code.startswith("SVR-")
        assert draft.requestor_name == "Rita Tester"
        assert draft.department_id == users.requestor.department_id

    def test_track_by_reference_code(self, db, users):
        draft = create_draft(db, users)
        assert VehicleRequestService.get_by_reference_code(db, draft.reference_code).id == draft.id
        with pytest.raises(RequestNotFoundError):
            VehicleRequestService.get_by_reference_code(db, "SVR-00000000-000000")

    def test_it_manager_may_edit_any_request(self, db, users):
        draft = submitted(db, users)
        updated = VehicleRequestService.update_request(
            db, draft.id, UpdateVehicleRequest(actor_id=users.it_manager.id, destination="Harbour")
        )
        assert updated.destination == "Harbour"

    def test_requestor_cannot_edit_after_submit(self, db, users):
        draft = submitted(db, users)
        with pytest.raises(AuthorizationError):
            VehicleRequestService.update_request(
                db, draft.id, UpdateVehicleRequest(actor_id=users.requestor.id, destination="Harbour")
            )

    def test_edit_rejects_reversed_dates(self, db, users):
        draft = create_draft(db, users)
        with pytest.raises(ValidationError):
            VehicleRequestService.update_request(
                db, draft.id, UpdateVehicleRequest(actor_id=users.requestor.id, travel_date_to=date(2026, 11, 1))
            )


class TestLegacyFlow:
    def test_submit_goes_to_odhc_approver(self, db, users):
        draft = create_draft(db, users)
        result = VehicleRequestService.submit_request(db, draft.id, users.requestor.id)
        assert result.status == "submitted"
        assert result.next_approver.id == users.odhc_approver.id

    def test_falls_back_to_requestor_department(self, db, users):
        users.odhc_approver.is_active = False
        db.commit()
        draft = create_draft(db, users)
        result = VehicleRequestService.submit_request(db, draft.id, users.requestor.id)
        assert result.next_approver.id == users.hr_approver.id

    def test_no_approver_at_all(self, db, users):
        users.odhc_approver.is_active = False
        users.hr_approver.is_active = False
        db.commit()
        draft = create_draft(db, users)
        with pytest.raises(NoApproverFoundError):
            VehicleRequestService.submit_request(db, draft.id, users.requestor.id)

    def test_single_approval_completes(self, db, users):
        draft = submitted(db, users)
        with pytest.raises(AuthorizationError):
            approve(db, draft.id, users.hr_approver)

        assign(db, draft.id, users.odhc_approver)
        result = approve(db, draft.id, users.odhc_approver, remarks="Driver assigned")
        assert result.status == "completed"
        record = step_record(db, draft.id, 1)
        assert record.status == "approved"
        assert record.comments == "Driver assigned"

    def test_vehicle_department_needs_assignment_before_approving(self, db, users):
        draft = submitted(db, users)
        with pytest.raises(ValidationError, match="Assigned Driver"):
            approve(db, draft.id, users.odhc_approver)

        VehicleRequestService.assign_vehicle(db, draft.id, AssignVehicleRequest(
            actor_id=users.odhc_approver.id, assigned_driver="Dan Driver", assigned_vehicle="Van 7"
        ))
        with pytest.raises(ValidationError, match="Approval Date"):
            approve(db, draft.id, users.odhc_approver)

        current = VehicleRequestService.get_request(db, draft.id)
        assert current.status == "submitted"
        assert step_record(db, draft.id, 1).status == "pending"

    def test_other_departments_approve_without_assignment(self, db, users, vehicle_workflow):
        draft = submitted(db, users)
        assert approve(db, draft.id, users.hr_approver).status == "department_approved"


class TestAssignment:
    def test_vehicle_department_assigns_while_awaiting_approval(self, db, users):
        draft = submitted(db, users)
        assigned = assign(db, draft.id, users.odhc_approver)
        assert assigned.assigned_driver == "Dan Driver"
        assert assigned.assigned_vehicle == "Van 7"
        assert assigned.approval_date == date(2026, 11, 1)
        assert assigned.status == "submitted"

    def test_only_approvers_assign(self, db, users):
        draft = submitted(db, users)
        with pytest.raises(AuthorizationError):
            assign(db, draft.id, users.requestor)
        with pytest.raises(AuthorizationError):
            assign(db, draft.id, users.it_manager)

    def test_other_approvers_wait_for_completion(self, db, users):
        draft = submitted(db, users)
        with pytest.raises(InvalidStatusError):
            assign(db, draft.id, users.hr_approver)

        assign(db, draft.id, users.odhc_approver)
        approve(db, draft.id, users.odhc_approver)
        updated = VehicleRequestService.assign_vehicle(db, draft.id, AssignVehicleRequest(
            actor_id=users.hr_approver.id, assigned_driver="Eve Driver", assigned_vehicle="Van 9"
        ))
        assert updated.assigned_driver == "Eve Driver"
        assert updated.approval_date == date(2026, 11, 1)

    def test_drafts_cannot_be_assigned(self, db, users):
        draft = create_draft(db, users)
        with pytest.raises(InvalidStatusError):
            assign(db, draft.id, users.odhc_approver)


class TestListing:
    @pytest.fixture
    def listed(self, db, users):
        draft = create_draft(db, users)
        pending = submitted(db, users)
        return draft, pending

    def list_for(self, db, user, **filters):
        return VehicleRequestService.list_requests(db, VehicleRequestQueryParams(actor_id=user.id, **filters))

    def test_requestor_sees_own_requests_with_drafts(self, db, users, listed):
        draft, pending = listed
        result = self.list_for(db, users.requestor)
        assert result.total_count == 2
        assert {r.id for r in result.requests} == {draft.id, pending.id}
        assert not any(r.is_pending_my_approval for r in result.requests)

    def test_vehicle_department_sees_everything_but_drafts(self, db, users, listed):
        _, pending = listed
        result = self.list_for(db, users.odhc_approver)
        assert [r.id for r in result.requests] == [pending.id]
        assert result.requests[0].is_pending_my_approval is True

    def test_department_approver_sees_own_department(self, db, users, listed):
        _, pending = listed
        hr = self.list_for(db, users.hr_approver)
        assert [r.id for r in hr.requests] == [pending.id]
        assert hr.requests[0].is_pending_my_approval is False

        assert self.list_for(db, users.it_approver).total_count == 0

    def test_filters_and_pagination(self, db, users, listed):
        draft, pending = listed
        assert [r.id for r in self.list_for(db, users.requestor, status="draft").requests] == [draft.id]
        assert self.list_for(db, users.requestor, search="airport").total_count == 2
        assert self.list_for(db, users.requestor, search="harbour").total_count == 0

        page = self.list_for(db, users.requestor, page_size=1, page=2)
        assert len(page.requests) == 1
        assert page.total_pages == 2

    def test_stats(self, db, users, listed):
        own = VehicleRequestService.get_stats(db, users.requestor.id)
        assert own.stats["draft"] == 1
        assert own.stats["submitted"] == 1
        assert own.stats["completed"] == 0
        assert own.total == 2

        approver = VehicleRequestService.get_stats(db, users.odhc_approver.id)
        assert approver.stats["submitted"] == 1
        assert approver.total == 1


class TestWorkflowFlow:
    def test_two_step_progression(self, db, users, vehicle_workflow):
        draft = submitted(db, users)
        assert step_record(db, draft.id, 1).approver_id == users.hr_approver.id

        result = approve(db, draft.id, users.hr_approver)
        assert result.status == "department_approved"
        assert result.next_approver.id == users.it_manager.id
        assert step_record(db, draft.id, 2).status == "pending"

        with pytest.raises(AuthorizationError):
            approve(db, draft.id, users.service_desk)

        result = approve(db, draft.id, users.it_manager)
        assert result.status == "completed"
        assert step_record(db, draft.id, 2).status == "approved"

        with pytest.raises(InvalidStatusError):
            approve(db, draft.id, users.it_manager)

    def test_blank_intermediate_status_uses_default(self, db, users):
        steps = [dict(TWO_STEPS[0], status_on_approval=" "), TWO_STEPS[1]]
        add_workflow(db, "vehicle_request", users.admin, steps)
        draft = submitted(db, users)
        assert approve(db, draft.id, users.hr_approver).status == "department_approved"

        assert VehicleRequestService.get_current_step(db, draft.id, users.it_manager.id).can_act is True
        assert approve(db, draft.id, users.it_manager).status == "completed"

    def test_admin_acts_on_gating_step(self, db, users, vehicle_workflow):
        draft = submitted(db, users)
        approve(db, draft.id, users.hr_approver)
        result = approve(db, draft.id, users.admin)
        assert result.status == "completed"
        assert step_record(db, draft.id, 2).approver_id == users.admin.id

    def test_missing_next_approver_blocks_approval(self, db, users, vehicle_workflow):
        draft = submitted(db, users)
        users.it_manager.is_active = False
        db.commit()
        with pytest.raises(NoApproverFoundError):
            approve(db, draft.id, users.hr_approver)
        assert VehicleRequestService.get_request(db, draft.id).status == "submitted"

    def test_decline_keeps_reason(self, db, users, vehicle_workflow):
        draft = submitted(db, users)
        approve(db, draft.id, users.hr_approver)
        result = VehicleRequestService.decline_request(
            db, draft.id, VehicleReasonRequest(actor_id=users.it_manager.id, reason="No vehicle free")
        )
        assert result.status == "declined"
        assert VehicleRequestService.get_request(db, draft.id).comments == "No vehicle free"
        assert step_record(db, draft.id, 2).status == "declined"

    def test_return_and_resubmit(self, db, users, vehicle_workflow):
        draft = submitted(db, users)
        result = VehicleRequestService.return_request(
            db, draft.id, VehicleReasonRequest(actor_id=users.hr_approver.id, reason="Add passengers")
        )
        assert result.status == "returned"
        assert step_record(db, draft.id, 1).return_reason == "Add passengers"

        VehicleRequestService.submit_request(db, draft.id, users.requestor.id)
        record = step_record(db, draft.id, 1)
        assert record.status == "pending"
        assert record.return_reason is None

    def test_stranger_cannot_decline(self, db, users, vehicle_workflow):
        draft = submitted(db, users)
        with pytest.raises(AuthorizationError):
            VehicleRequestService.decline_request(
                db, draft.id, VehicleReasonRequest(actor_id=users.service_desk.id, reason="No")
            )

    def test_current_step(self, db, users, vehicle_workflow):
        draft = submitted(db, users)
        current = VehicleRequestService.get_current_step(db, draft.id, users.hr_approver.id)
        assert current.can_act is True
        assert current.step_order == 1
        assert current.approver.id == users.hr_approver.id

        other = VehicleRequestService.get_current_step(db, draft.id, users.it_manager.id)
        assert other.can_act is False


class TestCancelAndDelete:
    def test_cancel(self, db, users):
        draft = submitted(db, users)
        assert VehicleRequestService.cancel_request(db, draft.id, users.requestor.id).status == "cancelled"

    def test_requestor_deletes_only_drafts(self, db, users):
        draft = submitted(db, users)
        with pytest.raises(InvalidStatusError):
            VehicleRequestService.delete_request(db, draft.id, users.requestor.id)
        with pytest.raises(AuthorizationError):
            VehicleRequestService.delete_request(db, draft.id, users.hr_approver.id)
        assert VehicleRequestService.delete_request(db, draft.id, users.admin.id) is True
