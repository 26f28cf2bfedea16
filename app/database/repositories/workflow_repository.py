from typing import List, Optional
from sqlalchemy.orm import Session

from app.database.models.users import User
from app.database.models.workflow import ApprovalWorkflow, WorkflowStep


class SqlAlchemyWorkflowRepository:
    """Workflow and user lookups backed by the request's database session."""

    def __init__(self, db: Session):
        self.db = db

    def find_latest_workflow(self, form_type: str, default_only: bool) -> Optional[ApprovalWorkflow]:
        query = self.db.query(ApprovalWorkflow).filter(
            ApprovalWorkflow.form_type == form_type,
            ApprovalWorkflow.is_active == True,
        )
        if default_only:
            query = query.filter(ApprovalWorkflow.is_default == True)
        return query.order_by(ApprovalWorkflow.created_at.desc(), ApprovalWorkflow.id.desc()).first()

    def get_steps(self, workflow_id: int) -> List[WorkflowStep]:
        return self.db.query(WorkflowStep).filter(
            WorkflowStep.workflow_id == workflow_id
        ).order_by(WorkflowStep.step_order.asc()).all()

    def find_active_user(
        self,
        role: Optional[str] = None,
        department_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> Optional[User]:
        query = self.db.query(User).filter(User.is_active == True)
        if role is not None:
            query = query.filter(User.role == role)
        if department_id is not None:
            query = query.filter(User.department_id == department_id)
        if user_id is not None:
            query = query.filter(User.id == user_id)
        return query.order_by(User.id.asc()).first()
