from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from datetime import datetime, date
from typing import Optional, List

from app.ReqResModels.requestmodels import ActorRequest

# Request Models
class CreateVehicleRequest(BaseModel):
    actor_id: int = Field(..., gt=0, description="Requestor creating the draft")
    department_id: Optional[int] = Field(None, gt=0, description="Defaults to the requestor's department")
    requestor_name: Optional[str] = Field(None, max_length=200, description="Defaults to the requestor's full name")
    request_type: str = Field(..., min_length=1, max_length=50, description="drop_passenger, pickup_passenger, ...")
    purpose: Optional[str] = Field(None, max_length=2000)
    destination: Optional[str] = Field(None, max_length=300)
    travel_date_from: Optional[date] = None
    travel_date_to: Optional[date] = None

    @model_validator(mode='after')
    def travel_dates_in_order(self):
        if self.travel_date_from and self.travel_date_to and self.travel_date_to < self.travel_date_from:
            raise ValueError("travel_date_to must not be before travel_date_from")
        return self

class UpdateVehicleRequest(BaseModel):
    actor_id: int = Field(..., gt=0)
    requestor_name: Optional[str] = Field(None, max_length=200)
    request_type: Optional[str] = Field(None, min_length=1, max_length=50)
    purpose: Optional[str] = Field(None, max_length=2000)
    destination: Optional[str] = Field(None, max_length=300)
    travel_date_from: Optional[date] = None
    travel_date_to: Optional[date] = None

class ApproveVehicleRequest(ActorRequest):
    remarks: Optional[str] = Field(None, max_length=1000, description="Optional approval remarks")

class VehicleReasonRequest(ActorRequest):
    reason: str = Field(..., min_length=1, max_length=1000, description="Required decline/return reason")

    @field_validator('reason')
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Reason is required")
        return v.strip()

class AssignVehicleRequest(ActorRequest):
    assigned_driver: str = Field(..., min_length=1, max_length=200, description="Driver assigned to the trip")
    assigned_vehicle: str = Field(..., min_length=1, max_length=200, description="Vehicle assigned to the trip")
    approval_date: Optional[date] = Field(None, description="Date the assignment was approved")

    @field_validator('assigned_driver', 'assigned_vehicle')
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Assigned driver and vehicle are required")
        return v.strip()

class VehicleRequestQueryParams(BaseModel):
    actor_id: int = Field(..., gt=0, description="User whose view of the requests is listed")
    page: int = Field(default=1, ge=1, description="Page number")
    page_size: int = Field(default=20, ge=1, le=100, description="Number of items per page")
    status: Optional[str] = Field(None, description="Filter by request status")
    department_id: Optional[int] = Field(None, description="Filter by department")
    search: Optional[str] = Field(None, description="Matches requestor name, reference code or destination")

# Response Models
class VehicleApprovalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    step_order: int
    step_name: str
    approver_id: int
    status: str
    comments: Optional[str] = None
    return_reason: Optional[str] = None
    approved_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None
    returned_at: Optional[datetime] = None

class VehicleRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    reference_code: Optional[str] = None
    requested_by: int
    department_id: int
    requestor_name: str
    request_type: str
    purpose: Optional[str] = None
    destination: Optional[str] = None
    travel_date_from: Optional[date] = None
    travel_date_to: Optional[date] = None
    status: str
    comments: Optional[str] = None
    assigned_driver: Optional[str] = None
    assigned_vehicle: Optional[str] = None
    approval_date: Optional[date] = None
    submitted_at: Optional[datetime] = None
    created_at: datetime
    approvals: List[VehicleApprovalResponse] = []

class VehicleRequestListItem(VehicleRequestResponse):
    is_pending_my_approval: bool = False

class VehicleRequestListResponse(BaseModel):
    requests: List[VehicleRequestListItem]
    total_count: int
    page: int
    page_size: int
    total_pages: int
