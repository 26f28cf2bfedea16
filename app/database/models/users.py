from sqlalchemy import Column, Integer, String, ForeignKey, Text, Boolean, TIMESTAMP
from sqlalchemy.orm import relationship
from app.database.database import Base
from datetime import datetime

class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=True)

    users = relationship("User", back_populates="department")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(String(50), nullable=False, default="requestor")  # requestor, department_approver, it_manager, service_desk, super_administrator
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=True)

    department = relationship("Department", back_populates="users")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_admin(self) -> bool:
        return self.role == "super_administrator"

    def can_approve_for_department(self, department_id) -> bool:
        if self.is_admin:
            return True
        return self.role == "department_approver" and self.department_id == department_id

    def can_approve_as_it_manager(self) -> bool:
        return self.role in ("it_manager", "super_administrator")

    def can_process_requests(self) -> bool:
        return self.role in ("service_desk", "super_administrator")
