"""Find the workflow step a given user may currently act on.

A request's status names the step that was *just* approved, so the gating step
is the one after it. ``submitted`` and ``returned`` always gate on the first
step. Statuses are not guaranteed unique per step, hence the fallbacks below.
"""
from typing import List, Optional
import logging

from app.logic.approver_resolver import ApproverResolver
from app.logic.workflow_status import ENTRY_STATUSES, PositionKind, locate_position, satisfied_indexes
from app.logic.workflow_store import WorkflowStore
from app.logic.workflow_types import ApprovalContext

logger = logging.getLogger(__name__)


class StepLocator:

    def __init__(self, store: WorkflowStore, resolver: ApproverResolver):
        self.store = store
        self.resolver = resolver
        # Incremented every time the unordered scan runs; should stay at zero
        self.last_resort_hits = 0

    def find_current_step_for_approver(
        self,
        form_type: str,
        approver,
        request_status: str,
        context: Optional[ApprovalContext] = None,
    ):
        steps = self.store.get_steps(form_type)
        if not steps:
            return None

        if request_status in ENTRY_STATUSES:
            first_step = steps[0]
            if self._is_step_approver(first_step, approver, context):
                return first_step
            return None

        position = locate_position(form_type, steps, request_status)
        if position.kind is PositionKind.DRAFT or position.is_terminal:
            logger.debug(f"Status {request_status!r} of {form_type} has no gating step")
            return None

        satisfied = satisfied_indexes(steps, request_status)
        if len(satisfied) > 1:
            logger.warning(
                f"Status {request_status!r} is produced by several steps of the {form_type} workflow "
                f"(orders {[steps[index].step_order for index in satisfied]})"
            )

        for index in satisfied:
            if index + 1 < len(steps):
                candidate = steps[index + 1]
                if self._is_step_approver(candidate, approver, context):
                    logger.info(
                        f"Matched step {candidate.step_order} ({candidate.step_name}) from status {request_status}"
                    )
                    return candidate

        if satisfied:
            step = self._forward_scan(steps, steps[satisfied[0]].step_order, approver, context)
            if step is not None:
                return step

        return self._last_resort_scan(form_type, steps, approver, request_status, context)

    def _forward_scan(self, steps: List, after_order: int, approver, context):
        for step in steps:
            if step.step_order <= after_order:
                continue
            if self._is_step_approver(step, approver, context):
                logger.info(f"Matched step {step.step_order} ({step.step_name}) via forward scan")
                return step
        return None

    def _last_resort_scan(self, form_type, steps: List, approver, request_status, context):
        """Match any step regardless of order. Reaching this means the status does not
        line up with the workflow's steps."""
        self.last_resort_hits += 1
        logger.warning(
            f"Status-based matching failed for status {request_status!r}, checking all steps",
            extra={
                "event": "workflow.last_resort_scan",
                "form_type": form_type,
                "request_status": request_status,
                "approver_id": getattr(approver, "id", None),
            },
        )
        for step in steps:
            if self._is_step_approver(step, approver, context):
                logger.warning(
                    f"Matched step {step.step_order} ({step.step_name}) by last resort scan",
                    extra={
                        "event": "workflow.last_resort_match",
                        "form_type": form_type,
                        "request_status": request_status,
                        "step_order": step.step_order,
                    },
                )
                return step
        return None

    def _is_step_approver(self, step, approver, context) -> bool:
        step_approver = self.resolver.find_approver_for_step(step, context)
        return step_approver is not None and step_approver.id == approver.id
