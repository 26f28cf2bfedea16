from fastapi import APIRouter, Depends, HTTPException, Query, status as http_status
from sqlalchemy.orm import Session
from typing import Optional

from app.api.errors import http_error
from app.database.database import get_db
from app.database.services.workflow_service import WorkflowService
from app.ReqResModels.workflowmodels import (
    CreateWorkflowRequest,
    FormType,
    UpdateWorkflowRequest,
    WorkflowErrorResponse,
    WorkflowListResponse,
    WorkflowResponse,
    WorkflowValidationResponse,
)
from app.logic.exceptions import BaseCustomError

router = APIRouter(
    prefix="/workflows",
    tags=["workflows"],
    responses={
        400: {"model": WorkflowErrorResponse, "description": "Bad request"},
        403: {"model": WorkflowErrorResponse, "description": "Not allowed"},
        404: {"model": WorkflowErrorResponse, "description": "Workflow not found"},
        500: {"model": WorkflowErrorResponse, "description": "Internal server error"}
    }
)

@router.get(
    "/",
    response_model=WorkflowListResponse,
    summary="List workflows",
    description="List every approval workflow, optionally filtered by form type"
)
def list_workflows(
    actor_id: int = Query(..., gt=0, description="Administrator performing the request"),
    form_type: Optional[FormType] = Query(None, description="Filter by form type"),
    db: Session = Depends(get_db)
):
    try:
        return WorkflowService.list_workflows(db, actor_id, form_type.value if form_type else None)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error retrieving workflows: {str(e)}"
        )

@router.get(
    "/active/{form_type}",
    response_model=WorkflowResponse,
    summary="Get the active workflow",
    description="Workflow currently applied to new requests of the form type"
)
def get_active_workflow(
    form_type: FormType,
    db: Session = Depends(get_db)
):
    try:
        return WorkflowService.get_active_workflow(db, form_type.value)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error retrieving active workflow: {str(e)}"
        )

@router.get(
    "/{workflow_id}",
    response_model=WorkflowResponse,
    summary="Get workflow by ID"
)
def get_workflow(
    workflow_id: int,
    actor_id: int = Query(..., gt=0, description="Administrator performing the request"),
    db: Session = Depends(get_db)
):
    try:
        return WorkflowService.get_workflow(db, workflow_id, actor_id)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error retrieving workflow: {str(e)}"
        )

@router.post(
    "/",
    response_model=WorkflowResponse,
    status_code=http_status.HTTP_201_CREATED,
    summary="Create a workflow",
    description="Create a workflow with its steps. Setting is_default clears the default flag of other workflows of the same form type"
)
def create_workflow(
    request: CreateWorkflowRequest,
    db: Session = Depends(get_db)
):
    try:
        return WorkflowService.create_workflow(db, request)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create workflow: {str(e)}"
        )

@router.put(
    "/{workflow_id}",
    response_model=WorkflowResponse,
    summary="Update a workflow",
    description="Update workflow settings. Steps, when given, replace the existing steps"
)
def update_workflow(
    workflow_id: int,
    request: UpdateWorkflowRequest,
    db: Session = Depends(get_db)
):
    try:
        return WorkflowService.update_workflow(db, workflow_id, request)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update workflow: {str(e)}"
        )

@router.delete(
    "/{workflow_id}",
    summary="Delete a workflow",
    description="Default workflows and active workflows with pending requests cannot be deleted"
)
def delete_workflow(
    workflow_id: int,
    actor_id: int = Query(..., gt=0, description="Administrator performing the request"),
    db: Session = Depends(get_db)
):
    try:
        WorkflowService.delete_workflow(db, workflow_id, actor_id)
        return {"message": "Workflow deleted successfully"}
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete workflow: {str(e)}"
        )

@router.get(
    "/{workflow_id}/validate",
    response_model=WorkflowValidationResponse,
    summary="Validate a workflow",
    description="Report steps sharing a status_on_approval and steps whose approver cannot be configured"
)
def validate_workflow(
    workflow_id: int,
    actor_id: int = Query(..., gt=0, description="Administrator performing the request"),
    db: Session = Depends(get_db)
):
    try:
        return WorkflowService.validate_workflow(db, workflow_id, actor_id)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to validate workflow: {str(e)}"
        )
