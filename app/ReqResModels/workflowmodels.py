from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from datetime import datetime
from typing import Optional, List
from enum import Enum

class FormType(str, Enum):
    ITEM_REQUEST = "item_request"
    VEHICLE_REQUEST = "vehicle_request"

class ApproverType(str, Enum):
    ROLE = "role"
    USER = "user"
    DEPARTMENT = "department"
    DEPARTMENT_APPROVER = "department_approver"

# Request Models
class WorkflowStepRequest(BaseModel):
    step_order: int = Field(..., ge=1, description="Position of the step, ascending, gaps allowed")
    step_name: str = Field(..., min_length=1, max_length=200, description="Display name of the step")
    approver_type: ApproverType = Field(..., description="How the approver is resolved")
    approver_role: Optional[str] = Field(None, max_length=50, description="Role for role-type steps")
    approver_user_id: Optional[int] = Field(None, gt=0, description="User for user-type steps")
    approver_department_id: Optional[int] = Field(None, gt=0, description="Department whose approver signs")
    requires_same_department: bool = Field(default=False, description="Approver must share the requestor's department")
    status_on_approval: str = Field(..., max_length=50, description="Status applied when this step is approved")
    status_on_completion: Optional[str] = Field(None, max_length=50, description="Status applied when this is the last step")

    @field_validator('step_order', 'approver_user_id', 'approver_department_id', mode='before')
    @classmethod
    def parse_int_fields(cls, v):
        if v is not None and isinstance(v, str):
            return int(v)
        return v

    @field_validator('step_name', 'status_on_approval')
    @classmethod
    def not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator('status_on_completion')
    @classmethod
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v

class CreateWorkflowRequest(BaseModel):
    actor_id: int = Field(..., gt=0, description="Administrator performing the change")
    form_type: FormType = Field(..., description="Form type the workflow applies to")
    name: str = Field(..., min_length=1, max_length=200, description="Workflow name")
    is_active: bool = Field(default=True)
    is_default: bool = Field(default=False)
    strict_statuses: bool = Field(default=False, description="Reject steps sharing a status_on_approval")
    steps: List[WorkflowStepRequest] = Field(..., min_length=1)

    @model_validator(mode='after')
    def unique_step_orders(self):
        orders = [step.step_order for step in self.steps]
        if len(orders) != len(set(orders)):
            raise ValueError("step_order values must be unique within a workflow")
        return self

class UpdateWorkflowRequest(BaseModel):
    actor_id: int = Field(..., gt=0, description="Administrator performing the change")
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None
    strict_statuses: bool = Field(default=False, description="Reject steps sharing a status_on_approval")
    steps: Optional[List[WorkflowStepRequest]] = Field(None, min_length=1)

    @model_validator(mode='after')
    def unique_step_orders(self):
        if self.steps:
            orders = [step.step_order for step in self.steps]
            if len(orders) != len(set(orders)):
                raise ValueError("step_order values must be unique within a workflow")
        return self

# Response Models
class WorkflowStepResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    step_order: int
    step_name: str
    approver_type: str
    approver_role: Optional[str] = None
    approver_user_id: Optional[int] = None
    approver_department_id: Optional[int] = None
    requires_same_department: bool
    status_on_approval: str
    status_on_completion: Optional[str] = None

class WorkflowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    form_type: str
    name: str
    is_active: bool
    is_default: bool
    created_by: int
    updated_by: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    steps: List[WorkflowStepResponse]

class WorkflowListResponse(BaseModel):
    workflows: List[WorkflowResponse]
    total: int

class WorkflowValidationResponse(BaseModel):
    workflow_id: int
    is_valid: bool
    duplicate_statuses: dict
    problems: List[str]

class WorkflowErrorResponse(BaseModel):
    error: str
    message: str
    details: Optional[dict] = None
