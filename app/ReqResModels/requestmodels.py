from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import datetime, date
from typing import Dict, Optional, List
from enum import Enum

class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

class ReturnTo(str, Enum):
    REQUESTOR = "requestor"
    DEPARTMENT_APPROVER = "department_approver"

# Request Models
class RequestItemPayload(BaseModel):
    category: str = Field(..., min_length=1, max_length=100, description="Equipment category")
    item_description: str = Field(..., min_length=1, description="What is being requested")
    quantity: int = Field(default=1, ge=1, description="Number of units")

class CreateItemRequest(BaseModel):
    actor_id: int = Field(..., gt=0, description="Requestor creating the draft")
    department_id: Optional[int] = Field(None, gt=0, description="Defaults to the requestor's department")
    reason: Optional[str] = Field(None, max_length=2000)
    priority: Priority = Field(default=Priority.MEDIUM)
    items: List[RequestItemPayload] = Field(default_factory=list)

    @field_validator('actor_id', 'department_id', mode='before')
    @classmethod
    def parse_int_fields(cls, v):
        if v is not None and isinstance(v, str):
            return int(v)
        return v

class UpdateItemRequest(BaseModel):
    actor_id: int = Field(..., gt=0)
    reason: Optional[str] = Field(None, max_length=2000)
    priority: Optional[Priority] = None
    items: Optional[List[RequestItemPayload]] = None

class ActorRequest(BaseModel):
    actor_id: int = Field(..., gt=0, description="User performing the action")

    @field_validator('actor_id', mode='before')
    @classmethod
    def parse_actor_id(cls, v):
        if isinstance(v, str):
            return int(v)
        return v

class ApproveItemRequest(ActorRequest):
    comments: Optional[str] = Field(None, max_length=1000, description="Optional approval comments")
    estimated_completion_date: Optional[date] = Field(None, description="Service desk estimate")
    processing_notes: Optional[str] = Field(None, max_length=1000, description="Service desk notes")

class DeclineItemRequest(ActorRequest):
    comments: str = Field(..., min_length=1, max_length=1000, description="Required decline comments")

    @field_validator('comments')
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Comments are required when declining")
        return v.strip()

class ReturnItemRequest(ActorRequest):
    return_reason: str = Field(..., min_length=1, max_length=1000, description="Why the request is returned")
    return_to: ReturnTo = Field(default=ReturnTo.REQUESTOR)

    @field_validator('return_reason')
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Return reason is required")
        return v.strip()

# Response Models
class RequestItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category: str
    item_description: str
    quantity: int

class ApprovalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    approval_type: str
    approver_id: int
    status: str
    comments: Optional[str] = None
    return_reason: Optional[str] = None
    approved_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None
    returned_at: Optional[datetime] = None

class ItemRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    request_number: Optional[str] = None
    requestor_id: int
    department_id: int
    reason: Optional[str] = None
    priority: str
    status: str
    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    items: List[RequestItemResponse] = []
    approvals: List[ApprovalResponse] = []

class ApproverSummary(BaseModel):
    id: int
    name: str
    email: str

class TransitionResponse(BaseModel):
    message: str
    request_id: int
    status: str
    next_approver: Optional[ApproverSummary] = None

class CurrentStepResponse(BaseModel):
    request_id: int
    status: str
    can_act: bool
    step_order: Optional[int] = None
    step_name: Optional[str] = None
    approver: Optional[ApproverSummary] = None

class RequestErrorResponse(BaseModel):
    error: str
    message: str
    details: Optional[dict] = None

# Listing, statistics and tracking
class ItemRequestQueryParams(BaseModel):
    actor_id: int = Field(..., gt=0, description="User whose view of the requests is listed")
    page: int = Field(default=1, ge=1, description="Page number")
    page_size: int = Field(default=20, ge=1, le=100, description="Number of items per page")
    status: Optional[str] = Field(None, description="Filter by request status")
    department_id: Optional[int] = Field(None, description="Filter by department (IT staff and admins)")
    requestor_id: Optional[int] = Field(None, description="Filter by requestor (IT staff and admins)")
    priority: Optional[Priority] = Field(None, description="Filter by priority")
    search: Optional[str] = Field(None, description="Matches the request number or reason")
    date_from: Optional[date] = Field(None, description="Submitted on or after this date")
    date_to: Optional[date] = Field(None, description="Submitted on or before this date")

class ItemRequestListResponse(BaseModel):
    requests: List[ItemRequestResponse]
    total_count: int
    page: int
    page_size: int
    total_pages: int

class RequestStatsResponse(BaseModel):
    stats: Dict[str, int]
    total: int

class TimelineEntry(BaseModel):
    stage: str
    status: str
    timestamp: Optional[datetime] = None
    completed_by: Optional[str] = None
    description: str
    comments: Optional[str] = None
    is_pending: bool
    is_completed: bool
    is_declined: bool = False

class TrackedItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: str
    item_description: str
    quantity: int

class ItemTrackingResponse(BaseModel):
    ticket_code: str
    status: str
    priority: str
    submitted_date: Optional[datetime] = None
    submitted_by: str
    department: Optional[str] = None
    purpose: Optional[str] = None
    timeline: List[TimelineEntry] = []
    items: List[TrackedItem] = []
