from typing import Optional
import logging

from app.logic.workflow_store import WorkflowRepository
from app.logic.workflow_types import ApprovalContext

logger = logging.getLogger(__name__)

DEPARTMENT_APPROVER_ROLE = "department_approver"


class ApproverResolver:
    """Turns a step's approver criteria into a concrete active user.

    Multiple matches are broken by lowest user id. A miss is always ``None``;
    the caller decides whether to fall back or reject the action.
    """

    def __init__(self, repository: WorkflowRepository):
        self.repository = repository

    def find_approver_for_step(self, step, context: Optional[ApprovalContext] = None):
        if step is None:
            raise ValueError("find_approver_for_step requires a workflow step")

        department_id = context.department_id if context else None
        approver_type = step.approver_type

        if approver_type == "role":
            approver = self._by_role(step, department_id)
        elif approver_type == "user":
            approver = self._by_user(step)
        elif approver_type in ("department", "department_approver"):
            approver = self._by_department(step, department_id)
        else:
            logger.error(
                f"Unknown approver_type {approver_type!r} on step {step.step_order} ({step.step_name})"
            )
            return None

        if approver is None:
            logger.warning(f"No approver found for step {step.step_order} ({step.step_name})")
        return approver

    def _by_role(self, step, department_id):
        if not step.approver_role:
            logger.warning(f"approver_role is not set for role-type step {step.step_order}")
            return None
        filters = {"role": step.approver_role}
        if step.requires_same_department and department_id is not None:
            filters["department_id"] = department_id
        return self.repository.find_active_user(**filters)

    def _by_user(self, step):
        if not step.approver_user_id:
            logger.warning(f"approver_user_id is not set for user-type step {step.step_order}")
            return None
        return self.repository.find_active_user(user_id=step.approver_user_id)

    def _by_department(self, step, department_id):
        if step.approver_department_id:
            return self.repository.find_active_user(
                role=DEPARTMENT_APPROVER_ROLE, department_id=step.approver_department_id
            )
        if step.requires_same_department and department_id is not None:
            # No department configured, use the requestor's
            return self.repository.find_active_user(
                role=DEPARTMENT_APPROVER_ROLE, department_id=department_id
            )
        logger.warning(
            f"Step {step.step_order} has no approver department and requires_same_department is off"
        )
        return None
