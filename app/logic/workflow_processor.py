from typing import List, Optional
import logging

from app.logic.approver_resolver import ApproverResolver
from app.logic.step_locator import StepLocator
from app.logic.workflow_status import (
    COMPLETED,
    DEFAULT_INTERMEDIATE_STATUS,
    ENTRY_STATUSES,
    WorkflowPosition,
    approved_status,
    locate_position,
)
from app.logic.workflow_store import WorkflowRepository, WorkflowStore
from app.logic.workflow_types import ApprovalContext, StepAssignment

logger = logging.getLogger(__name__)


class WorkflowProcessor:
    """Drives requests through the active workflow of their form type.

    Missing workflows and unresolvable approvers come back as ``None``; callers
    fall back to their legacy lookup or reject the action.
    """

    def __init__(self, repository: WorkflowRepository):
        self.store = WorkflowStore(repository)
        self.resolver = ApproverResolver(repository)
        self.locator = StepLocator(self.store, self.resolver)

    def get_active_workflow(self, form_type: str):
        return self.store.get_active_workflow(form_type)

    def get_steps(self, form_type: str) -> List:
        return self.store.get_steps(form_type)

    def get_first_pending_step(self, form_type: str):
        steps = self.store.get_steps(form_type)
        return steps[0] if steps else None

    def get_next_step(self, form_type: str, current_step_order: int):
        for step in self.store.get_steps(form_type):
            if step.step_order > current_step_order:
                return step
        return None

    def find_approver_for_step(self, step, context: Optional[ApprovalContext] = None):
        return self.resolver.find_approver_for_step(step, context)

    def find_current_step_for_approver(
        self, form_type: str, approver, request_status: str, context: Optional[ApprovalContext] = None
    ):
        return self.locator.find_current_step_for_approver(form_type, approver, request_status, context)

    def process_workflow_on_submit(
        self, form_type: str, context: Optional[ApprovalContext] = None
    ) -> Optional[StepAssignment]:
        first_step = self.get_first_pending_step(form_type)
        if first_step is None:
            logger.warning(f"No workflow found for form type: {form_type}. Caller falls back.")
            return None

        approver = self.resolver.find_approver_for_step(first_step, context)
        if approver is None:
            logger.warning(f"No approver found for first step of the {form_type} workflow")
            return None

        return StepAssignment(step=first_step, approver=approver)

    def process_workflow_on_approval(
        self, form_type: str, context: Optional[ApprovalContext], current_step_order: int
    ) -> Optional[StepAssignment]:
        """Next step and its approver after ``current_step_order``; ``None`` when the
        approval just applied was the last one or the next approver is missing."""
        next_step = self.get_next_step(form_type, current_step_order)
        if next_step is None:
            return None

        approver = self.resolver.find_approver_for_step(next_step, context)
        if approver is None:
            logger.warning(
                f"No approver found for next step (order: {next_step.step_order}) of the {form_type} workflow"
            )
            return None

        return StepAssignment(step=next_step, approver=approver)

    def locate_position(self, form_type: str, status: str) -> WorkflowPosition:
        return locate_position(form_type, self.store.get_steps(form_type), status)

    def gating_step(self, form_type: str, status: str):
        """The step a request in ``status`` waits on, regardless of who acts."""
        steps = self.store.get_steps(form_type)
        position = self.locate_position(form_type, status)
        if not position.is_actionable:
            return None
        return next((step for step in steps if step.step_order == position.step_order), None)

    def actionable_statuses(self, form_type: str) -> List[str]:
        """Statuses from which a request can still be approved, declined or returned."""
        steps = self.store.get_steps(form_type)
        statuses = list(ENTRY_STATUSES)
        for index in range(len(steps) - 1):
            status = approved_status(steps, index)
            if status not in statuses:
                statuses.append(status)
        return statuses

    @staticmethod
    def resolve_status_on_approval(step, has_next_step: bool) -> str:
        """Status to persist once ``step`` is approved. Never blank."""
        status_on_approval = (step.status_on_approval or "").strip()
        if has_next_step:
            if not status_on_approval:
                logger.warning(
                    f"Step {step.step_order} has empty status_on_approval, "
                    f"using {DEFAULT_INTERMEDIATE_STATUS!r}"
                )
                return DEFAULT_INTERMEDIATE_STATUS
            return status_on_approval

        status_on_completion = (step.status_on_completion or "").strip()
        return status_on_completion or status_on_approval or COMPLETED
