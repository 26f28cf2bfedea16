from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class ApprovalContext:
    """Request data handed to approver resolution."""
    department_id: Optional[int] = None


@dataclass(frozen=True)
class StepAssignment:
    """A workflow step together with the user resolved to approve it."""
    step: Any
    approver: Any

    @property
    def step_order(self) -> int:
        return self.step.step_order
