"""Status vocabulary and the workflow position model.

Requests persist a plain status string. Internally the engine reads that string
as a ``WorkflowPosition``: either the request is a draft, is waiting on a
specific step (by ``step_order``), has reached a terminal status, or carries a
status that no step of the active workflow produces.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Any

DRAFT = "draft"
SUBMITTED = "submitted"
RETURNED = "returned"
COMPLETED = "completed"
CANCELLED = "cancelled"
DECLINED = "declined"

# Statuses that always point at the first step of the workflow
ENTRY_STATUSES = (SUBMITTED, RETURNED)

TERMINAL_STATUSES = frozenset({
    COMPLETED,
    CANCELLED,
    DECLINED,
    "department_declined",
    "it_manager_declined",
})

# Used when a step that is followed by another step has a blank status_on_approval
DEFAULT_INTERMEDIATE_STATUS = "department_approved"


class PositionKind(str, Enum):
    DRAFT = "draft"
    AWAITING_STEP = "awaiting_step"
    TERMINAL = "terminal"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class WorkflowPosition:
    form_type: str
    kind: PositionKind
    status: str
    step_order: Optional[int] = None

    @property
    def is_actionable(self) -> bool:
        return self.kind is PositionKind.AWAITING_STEP

    @property
    def is_terminal(self) -> bool:
        return self.kind is PositionKind.TERMINAL


def approved_status(steps: Sequence[Any], index: int) -> str:
    """Status a request carries once ``steps[index]`` is approved.

    A step followed by another step never leaves the status blank; it falls
    back to ``DEFAULT_INTERMEDIATE_STATUS``, the same value persisted on approval.
    """
    status = (steps[index].status_on_approval or "").strip()
    if not status and index + 1 < len(steps):
        return DEFAULT_INTERMEDIATE_STATUS
    return status


def satisfied_indexes(steps: Sequence[Any], status: str) -> list:
    """Indexes of the steps whose approval produces ``status``."""
    return [index for index in range(len(steps)) if approved_status(steps, index) == status]


def locate_position(form_type: str, steps: Sequence[Any], status: str) -> WorkflowPosition:
    """Project a legacy status string onto the ordered steps of a workflow."""
    if status == DRAFT:
        return WorkflowPosition(form_type, PositionKind.DRAFT, status)

    if status in ENTRY_STATUSES:
        first_order = steps[0].step_order if steps else None
        return WorkflowPosition(form_type, PositionKind.AWAITING_STEP, status, first_order)

    for index in satisfied_indexes(steps, status):
        if index + 1 < len(steps):
            return WorkflowPosition(
                form_type, PositionKind.AWAITING_STEP, status, steps[index + 1].step_order
            )
        return WorkflowPosition(form_type, PositionKind.TERMINAL, status)

    if status in TERMINAL_STATUSES or any(step.status_on_completion == status for step in steps):
        return WorkflowPosition(form_type, PositionKind.TERMINAL, status)

    return WorkflowPosition(form_type, PositionKind.UNKNOWN, status)


def find_duplicate_statuses(steps: Sequence[Any]) -> dict:
    """Map each status_on_approval shared by more than one step to those step orders."""
    seen = {}
    for step in steps:
        seen.setdefault(step.status_on_approval, []).append(step.step_order)
    return {status: orders for status, orders in seen.items() if len(orders) > 1}
