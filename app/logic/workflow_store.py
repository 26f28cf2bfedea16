from typing import Any, List, Optional, Protocol
import logging

logger = logging.getLogger(__name__)


class WorkflowRepository(Protocol):
    """Data access the workflow engine needs. Every call reads current data."""

    def find_latest_workflow(self, form_type: str, default_only: bool) -> Optional[Any]:
        """Newest active workflow for ``form_type``; restricted to defaults when asked."""
        ...

    def get_steps(self, workflow_id: int) -> List[Any]:
        ...

    def find_active_user(
        self,
        role: Optional[str] = None,
        department_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> Optional[Any]:
        """Lowest-id active user matching every filter that is not None."""
        ...


class WorkflowStore:
    """Read-only view of the approval workflows used by the engine."""

    def __init__(self, repository: WorkflowRepository):
        self.repository = repository

    def get_active_workflow(self, form_type: str):
        workflow = self.repository.find_latest_workflow(form_type, default_only=True)
        if workflow is None:
            logger.info(f"No active default workflow for {form_type}, trying any active workflow")
            workflow = self.repository.find_latest_workflow(form_type, default_only=False)

        if workflow is None:
            logger.info(f"No active workflow found for form type: {form_type}")
            return None

        logger.debug(
            f"Found workflow {workflow.name} (ID: {workflow.id}, default: {workflow.is_default})"
        )
        return workflow

    def get_steps(self, form_type: str) -> List[Any]:
        """Steps of the active workflow in ascending step_order, or an empty list."""
        workflow = self.get_active_workflow(form_type)
        if workflow is None:
            return []
        steps = sorted(self.repository.get_steps(workflow.id), key=lambda step: step.step_order)
        logger.debug(f"Found {len(steps)} step(s) for workflow {workflow.id}")
        return steps
