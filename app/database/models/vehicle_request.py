from sqlalchemy import Column, Integer, String, ForeignKey, Text, Date, TIMESTAMP, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database.database import Base
from app.database.models.mixins import ApprovalTransitionsMixin
from datetime import datetime


class ServiceVehicleRequest(Base):
    __tablename__ = "service_vehicle_requests"

    id = Column("request_id", Integer, primary_key=True, index=True)
    reference_code = Column(String(50), unique=True, index=True, nullable=True)
    requested_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False)
    requestor_name = Column(String(200), nullable=False)
    request_type = Column(String(50), nullable=False)  # drop_passenger, pickup_passenger, ...
    purpose = Column(Text, nullable=True)
    destination = Column(String(300), nullable=True)
    travel_date_from = Column(Date, nullable=True)
    travel_date_to = Column(Date, nullable=True)
    status = Column(String(50), nullable=False, default="draft")
    comments = Column(Text, nullable=True)
    # Filled in by the vehicle department before it approves
    assigned_driver = Column(String(200), nullable=True)
    assigned_vehicle = Column(String(200), nullable=True)
    approval_date = Column(Date, nullable=True)
    submitted_at = Column(TIMESTAMP, nullable=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=True)

    requested_by_user = relationship("User", foreign_keys=[requested_by])
    department = relationship("Department")
    approvals = relationship("VehicleApproval", back_populates="vehicle_request", cascade="all, delete-orphan")


class VehicleApproval(ApprovalTransitionsMixin, Base):
    __tablename__ = "vehicle_approvals"
    __table_args__ = (
        UniqueConstraint("vehicle_request_id", "step_order", name="unique_vehicle_request_step_order"),
    )

    id = Column(Integer, primary_key=True, index=True)
    vehicle_request_id = Column(
        Integer,
        ForeignKey("service_vehicle_requests.request_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    approver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    workflow_step_id = Column(Integer, ForeignKey("workflow_steps.id", ondelete="SET NULL"), nullable=True)
    step_order = Column(Integer, nullable=False)
    step_name = Column(String(200), nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending, approved, declined, returned
    comments = Column(Text, nullable=True)
    approved_at = Column(TIMESTAMP, nullable=True)
    declined_at = Column(TIMESTAMP, nullable=True)
    returned_at = Column(TIMESTAMP, nullable=True)
    return_reason = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow)

    vehicle_request = relationship("ServiceVehicleRequest", back_populates="approvals")
    approver = relationship("User")
    workflow_step = relationship("WorkflowStep")
