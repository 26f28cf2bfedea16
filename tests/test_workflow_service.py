import pytest

from app.database.models.workflow import ApprovalWorkflow
from app.database.services.item_request_service import ItemRequestService
from app.database.services.workflow_service import WorkflowService
from app.logic.exceptions import AuthorizationError, ValidationError, WorkflowNotFoundError
from app.ReqResModels.requestmodels import CreateItemRequest, RequestItemPayload
from app.ReqResModels.workflowmodels import CreateWorkflowRequest, UpdateWorkflowRequest
from tests.factories import ITEM_STEPS


def create(db, users, **fields):
    payload = {
        "actor_id": users.admin.id,
        "form_type": "item_request",
        "name": "Equipment approvals",
        "is_default": True,
        "steps": [dict(step, approver_type="role") for step in ITEM_STEPS],
    }
    payload.update(fields)
    return WorkflowService.create_workflow(db, CreateWorkflowRequest(**payload))


class TestCreate:
    def test_steps_are_stored_in_order(self, db, users):
        workflow = create(db, users)
        assert [step.step_order for step in workflow.steps] == [1, 2, 3]
        assert workflow.created_by == users.admin.id

    def test_new_default_replaces_old_default(self, db, users):
        first = create(db, users)
        second = create(db, users, name="Replacement")

        db.expire_all()
        assert db.get(ApprovalWorkflow, first.id).is_default is False
        assert db.get(ApprovalWorkflow, second.id).is_default is True
        assert WorkflowService.get_active_workflow(db, "item_request").id == second.id

    def test_only_admins(self, db, users):
        with pytest.raises(AuthorizationError):
            create(db, users, actor_id=users.it_manager.id)

    def test_role_step_without_role(self, db, users):
        steps = [{"step_order": 1, "step_name": "Anyone", "approver_type": "role", "status_on_approval": "ok"}]
        with pytest.raises(ValidationError):
            create(db, users, steps=steps)

    def test_unknown_user_step(self, db, users):
        steps = [{"step_order": 1, "step_name": "Named", "approver_type": "user",
                  "approver_user_id": 999, "status_on_approval": "ok"}]
        with pytest.raises(ValidationError):
            create(db, users, steps=steps)

    def test_shared_status_allowed_unless_strict(self, db, users):
        steps = [
            {"step_order": 1, "step_name": "A", "approver_type": "role", "approver_role": "it_manager",
             "status_on_approval": "approved"},
            {"step_order": 2, "step_name": "B", "approver_type": "role", "approver_role": "service_desk",
             "status_on_approval": "approved"},
        ]
        assert create(db, users, steps=steps).id

        with pytest.raises(ValidationError):
            create(db, users, steps=steps, strict_statuses=True)


class TestUpdate:
    def test_steps_replaced_as_a_unit(self, db, users):
        workflow = create(db, users)
        steps = [{"step_order": 1, "step_name": "IT only", "approver_type": "role",
                  "approver_role": "it_manager", "status_on_approval": "it_manager_approved",
                  "status_on_completion": "completed"}]
        updated = WorkflowService.update_workflow(
            db, workflow.id, UpdateWorkflowRequest(actor_id=users.admin.id, name="Short", steps=steps)
        )
        assert updated.name == "Short"
        assert [step.step_name for step in updated.steps] == ["IT only"]
        assert updated.updated_by == users.admin.id

    def test_update_missing_workflow(self, db, users):
        with pytest.raises(WorkflowNotFoundError):
            WorkflowService.update_workflow(db, 999, UpdateWorkflowRequest(actor_id=users.admin.id))


class TestDelete:
    def test_default_cannot_be_deleted(self, db, users):
        workflow = create(db, users)
        with pytest.raises(ValidationError):
            WorkflowService.delete_workflow(db, workflow.id, users.admin.id)

    def test_active_workflow_with_pending_requests(self, db, users):
        workflow = create(db, users, is_default=False)
        draft = ItemRequestService.create_request(db, CreateItemRequest(
            actor_id=users.requestor.id,
            items=[RequestItemPayload(category="monitor", item_description="27 inch")],
        ))
        ItemRequestService.submit_request(db, draft.id, users.requestor.id)

        with pytest.raises(ValidationError):
            WorkflowService.delete_workflow(db, workflow.id, users.admin.id)

        WorkflowService.update_workflow(db, workflow.id, UpdateWorkflowRequest(actor_id=users.admin.id, is_active=False))
        assert WorkflowService.delete_workflow(db, workflow.id, users.admin.id) is True
        with pytest.raises(WorkflowNotFoundError):
            WorkflowService.get_workflow(db, workflow.id, users.admin.id)


def test_validate_reports_duplicates(db, users):
    steps = [
        {"step_order": 1, "step_name": "A", "approver_type": "role", "approver_role": "it_manager",
         "status_on_approval": "approved"},
        {"step_order": 5, "step_name": "B", "approver_type": "role", "approver_role": "service_desk",
         "status_on_approval": "approved"},
    ]
    workflow = create(db, users, steps=steps)
    report = WorkflowService.validate_workflow(db, workflow.id, users.admin.id)

    assert report.is_valid is False
    assert report.duplicate_statuses == {"approved": [1, 5]}

    clean = WorkflowService.validate_workflow(db, create(db, users).id, users.admin.id)
    assert clean.is_valid is True
    assert clean.problems == []
