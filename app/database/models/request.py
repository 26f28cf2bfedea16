from sqlalchemy import Column, Integer, String, ForeignKey, Text, Date, TIMESTAMP, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database.database import Base
from app.database.models.mixins import ApprovalTransitionsMixin
from datetime import datetime


class ItemRequest(Base):
    __tablename__ = "requests"

    id = Column(Integer, primary_key=True, index=True)
    request_number = Column(String(50), unique=True, index=True, nullable=True)
    requestor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False)
    reason = Column(Text, nullable=True)
    priority = Column(String(20), nullable=False, default="medium")  # low, medium, high, urgent
    status = Column(String(50), nullable=False, default="draft")
    submitted_at = Column(TIMESTAMP, nullable=True)
    completed_at = Column(TIMESTAMP, nullable=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=True)

    requestor = relationship("User", foreign_keys=[requestor_id])
    department = relationship("Department")
    items = relationship("RequestItem", back_populates="request", cascade="all, delete-orphan")
    approvals = relationship("Approval", back_populates="request", cascade="all, delete-orphan")


class RequestItem(Base):
    __tablename__ = "request_items"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey("requests.id", ondelete="CASCADE"), nullable=False)
    category = Column(String(100), nullable=False)
    item_description = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    created_at = Column(TIMESTAMP, default=datetime.utcnow)

    request = relationship("ItemRequest", back_populates="items")


class Approval(ApprovalTransitionsMixin, Base):
    __tablename__ = "approvals"
    __table_args__ = (
        UniqueConstraint("request_id", "approval_type", name="unique_request_approval_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey("requests.id", ondelete="CASCADE"), nullable=False, index=True)
    approver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    approval_type = Column(String(50), nullable=False)  # department_approval, it_manager_approval, service_desk_processing
    status = Column(String(20), nullable=False, default="pending")  # pending, approved, declined, returned
    comments = Column(Text, nullable=True)
    approved_at = Column(TIMESTAMP, nullable=True)
    declined_at = Column(TIMESTAMP, nullable=True)
    returned_at = Column(TIMESTAMP, nullable=True)
    return_reason = Column(Text, nullable=True)
    estimated_completion_date = Column(Date, nullable=True)  # service desk use
    processing_notes = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow)

    request = relationship("ItemRequest", back_populates="approvals")
    approver = relationship("User")
