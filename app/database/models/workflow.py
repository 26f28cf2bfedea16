from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, TIMESTAMP, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database.database import Base
from datetime import datetime


class ApprovalWorkflow(Base):
    __tablename__ = "approval_workflows"

    id = Column(Integer, primary_key=True, index=True)
    form_type = Column(String(50), nullable=False, index=True)  # item_request, vehicle_request
    name = Column("workflow_name", String(200), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=True)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    creator = relationship("User", foreign_keys=[created_by])

    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    updater = relationship("User", foreign_keys=[updated_by])

    steps = relationship(
        "WorkflowStep",
        back_populates="workflow",
        cascade="all, delete-orphan",
        order_by="WorkflowStep.step_order",
    )


class WorkflowStep(Base):
    __tablename__ = "workflow_steps"
    __table_args__ = (
        UniqueConstraint("workflow_id", "step_order", name="unique_workflow_step_order"),
    )

    id = Column(Integer, primary_key=True, index=True)
    step_order = Column(Integer, nullable=False)  # ascending, gaps allowed
    step_name = Column(String(200), nullable=False)

    workflow_id = Column(Integer, ForeignKey("approval_workflows.id", ondelete="CASCADE"), nullable=False)
    workflow = relationship("ApprovalWorkflow", back_populates="steps")

    approver_type = Column(String(50), nullable=False)  # role, user, department, department_approver
    approver_role = Column(String(50), nullable=True)

    approver_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    approver_user = relationship("User")

    approver_department_id = Column(Integer, ForeignKey("departments.id"), nullable=True)
    approver_department = relationship("Department")

    requires_same_department = Column(Boolean, nullable=False, default=False)
    status_on_approval = Column(String(50), nullable=False)
    status_on_completion = Column(String(50), nullable=True)  # final status if this is the last step
    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=True)
