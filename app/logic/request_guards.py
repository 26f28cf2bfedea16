"""Who may do what to a request, for both request subtypes."""
from dataclasses import dataclass
from typing import Optional

from app.logic.workflow_status import (
    COMPLETED,
    DRAFT,
    RETURNED,
    TERMINAL_STATUSES,
)
from app.logic.workflow_types import ApprovalContext

ADMIN_ROLE = "super_administrator"
EDITABLE_STATUSES = (DRAFT, RETURNED)
ITEM_FORM = "item_request"
VEHICLE_FORM = "vehicle_request"
# Roles that see every department's requests
WIDE_VIEW_ROLES = ("it_manager", "service_desk", ADMIN_ROLE)


@dataclass(frozen=True)
class ItemStage:
    """One hardcoded stage of the item request flow."""
    approval_type: str
    approved_status: str
    declined_status: Optional[str] = None
    returnable: bool = False
    # Service desk processing is approved twice; the second pass completes the request
    completion_pass: bool = False


ITEM_STAGES = {
    "submitted": ItemStage("department_approval", "department_approved", "department_declined", returnable=True),
    "department_approved": ItemStage("it_manager_approval", "it_manager_approved", "it_manager_declined", returnable=True),
    "it_manager_approved": ItemStage("service_desk_processing", "service_desk_processing"),
    "service_desk_processing": ItemStage("service_desk_processing", COMPLETED, completion_pass=True),
}

# Approval record created for the stage that follows each approved status
ITEM_NEXT_APPROVAL = {
    "department_approved": ("it_manager_approval", "it_manager"),
    "it_manager_approved": ("service_desk_processing", "service_desk"),
}


def is_admin(user) -> bool:
    return user.role == ADMIN_ROLE


def is_owner_or_admin(user, owner_id) -> bool:
    return user.id == owner_id or is_admin(user)


def can_edit_item_request(user, request) -> bool:
    if is_admin(user):
        return True
    return user.id == request.requestor_id and request.status in EDITABLE_STATUSES


def can_edit_vehicle_request(user, request) -> bool:
    if user.role in ("it_manager", ADMIN_ROLE):
        return True
    return user.id == request.requested_by and request.status in EDITABLE_STATUSES


def can_submit_item_request(user, request) -> bool:
    return is_owner_or_admin(user, request.requestor_id)


def can_submit_vehicle_request(user, request) -> bool:
    return user.id == request.requested_by


def is_submittable(status: str) -> bool:
    return status in EDITABLE_STATUSES


def is_cancellable(status: str) -> bool:
    return status not in TERMINAL_STATUSES


def can_delete_item_request(user, request) -> bool:
    return is_owner_or_admin(user, request.requestor_id) and request.status == DRAFT


def can_delete_vehicle_request(user, request) -> bool:
    if is_admin(user):
        return True
    return user.id == request.requested_by and request.status == DRAFT


def has_item_stage_role(user, stage: ItemStage, department_id) -> bool:
    """Role check used for item requests when no workflow is configured."""
    if stage.approval_type == "department_approval":
        return user.can_approve_for_department(department_id)
    if stage.approval_type == "it_manager_approval":
        return user.can_approve_as_it_manager()
    return user.can_process_requests()


def is_item_stage_approver(processor, user, request, stage: ItemStage) -> bool:
    """Whether ``user`` may approve, decline or return ``request`` at ``stage``."""
    if is_admin(user):
        return True

    steps = processor.get_steps(ITEM_FORM)
    if not steps:
        return has_item_stage_role(user, stage, request.department_id)

    context = ApprovalContext(department_id=request.department_id)
    if stage.completion_pass:
        # The step that produced the current status is approved a second time
        step = next((s for s in steps if s.status_on_approval == request.status), None)
        if step is None:
            return has_item_stage_role(user, stage, request.department_id)
        approver = processor.find_approver_for_step(step, context)
        return approver is not None and approver.id == user.id

    gating = processor.gating_step(ITEM_FORM, request.status)
    if gating is None:
        return has_item_stage_role(user, stage, request.department_id)

    # The locator may match an earlier or later step; only the gating one counts
    step = processor.find_current_step_for_approver(ITEM_FORM, user, request.status, context)
    return step is not None and step.step_order == gating.step_order


def has_wide_view(user) -> bool:
    return user.role in WIDE_VIEW_ROLES
