from fastapi import APIRouter, Depends, HTTPException, Query, status as http_status
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional

from app.api.errors import http_error
from app.database.database import get_db
from app.database.services.item_request_service import ItemRequestService
from app.ReqResModels.requestmodels import (
    ActorRequest,
    ApproveItemRequest,
    CreateItemRequest,
    CurrentStepResponse,
    DeclineItemRequest,
    ItemRequestListResponse,
    ItemRequestQueryParams,
    ItemRequestResponse,
    ItemTrackingResponse,
    Priority,
    RequestErrorResponse,
    RequestStatsResponse,
    ReturnItemRequest,
    TransitionResponse,
    UpdateItemRequest,
)
from app.logic.exceptions import BaseCustomError

router = APIRouter(
    prefix="/requests",
    tags=["item requests"],
    responses={
        400: {"model": RequestErrorResponse, "description": "Bad request"},
        403: {"model": RequestErrorResponse, "description": "Not allowed"},
        404: {"model": RequestErrorResponse, "description": "Request not found"},
        500: {"model": RequestErrorResponse, "description": "Internal server error"}
    }
)

@router.post(
    "/",
    response_model=ItemRequestResponse,
    status_code=http_status.HTTP_201_CREATED,
    summary="Create an equipment request",
    description="Create a draft equipment request with its line items"
)
def create_request(
    request: CreateItemRequest,
    db: Session = Depends(get_db)
):
    """Create a draft request"""
    try:
        return ItemRequestService.create_request(db, request)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create request: {str(e)}"
        )

@router.get(
    "/",
    response_model=ItemRequestListResponse,
    summary="List requests",
    description="Requests visible to the acting user, with optional filtering and pagination"
)
def list_requests(
    actor_id: int = Query(..., gt=0, description="Acting user"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Number of items per page"),
    status: Optional[str] = Query(None, description="Filter by request status"),
    department_id: Optional[int] = Query(None, description="Filter by department"),
    requestor_id: Optional[int] = Query(None, description="Filter by requestor"),
    priority: Optional[Priority] = Query(None, description="Filter by priority"),
    search: Optional[str] = Query(None, description="Search request number and reason"),
    date_from: Optional[date] = Query(None, description="Submitted on or after (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(None, description="Submitted on or before (YYYY-MM-DD)"),
    db: Session = Depends(get_db)
):
    try:
        params = ItemRequestQueryParams(
            actor_id=actor_id,
            page=page,
            page_size=page_size,
            status=status,
            department_id=department_id,
            requestor_id=requestor_id,
            priority=priority,
            search=search,
            date_from=date_from,
            date_to=date_to
        )
        return ItemRequestService.list_requests(db, params)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error retrieving requests: {str(e)}"
        )

@router.get(
    "/stats/overview",
    response_model=RequestStatsResponse,
    summary="Request statistics",
    description="Request counts per status within the acting user's view"
)
def get_stats(
    actor_id: int = Query(..., gt=0, description="Acting user"),
    db: Session = Depends(get_db)
):
    try:
        return ItemRequestService.get_stats(db, actor_id)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error retrieving request statistics: {str(e)}"
        )

@router.get(
    "/track/{ticket_code}",
    response_model=ItemTrackingResponse,
    summary="Track a request by ticket code",
    description="Public progress timeline; no acting user required"
)
def track_request(
    ticket_code: str,
    db: Session = Depends(get_db)
):
    try:
        return ItemRequestService.track_request(db, ticket_code)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error tracking request: {str(e)}"
        )

@router.get(
    "/{request_id}",
    response_model=ItemRequestResponse,
    summary="Get request by ID"
)
def get_request(
    request_id: int,
    db: Session = Depends(get_db)
):
    try:
        return ItemRequestService.get_request(db, request_id)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error retrieving request: {str(e)}"
        )

@router.put(
    "/{request_id}",
    response_model=ItemRequestResponse,
    summary="Update a request",
    description="Requestors edit their draft or returned requests; administrators can edit any request"
)
def update_request(
    request_id: int,
    request: UpdateItemRequest,
    db: Session = Depends(get_db)
):
    try:
        return ItemRequestService.update_request(db, request_id, request)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update request: {str(e)}"
        )

@router.post(
    "/{request_id}/submit",
    response_model=TransitionResponse,
    summary="Submit a request",
    description="Send a draft or returned request to its department approver"
)
def submit_request(
    request_id: int,
    request: ActorRequest,
    db: Session = Depends(get_db)
):
    try:
        return ItemRequestService.submit_request(db, request_id, request.actor_id)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to submit request: {str(e)}"
        )

@router.post(
    "/{request_id}/approve",
    response_model=TransitionResponse,
    summary="Approve a request",
    description="Approve the request at its current stage and route it to the next approver"
)
def approve_request(
    request_id: int,
    request: ApproveItemRequest,
    db: Session = Depends(get_db)
):
    try:
        return ItemRequestService.approve_request(db, request_id, request)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to approve request: {str(e)}"
        )

@router.post(
    "/{request_id}/decline",
    response_model=TransitionResponse,
    summary="Decline a request"
)
def decline_request(
    request_id: int,
    request: DeclineItemRequest,
    db: Session = Depends(get_db)
):
    try:
        return ItemRequestService.decline_request(db, request_id, request)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to decline request: {str(e)}"
        )

@router.post(
    "/{request_id}/return",
    response_model=TransitionResponse,
    summary="Return a request for revision",
    description="Return to the requestor, or from the IT manager back to the department approver"
)
def return_request(
    request_id: int,
    request: ReturnItemRequest,
    db: Session = Depends(get_db)
):
    try:
        return ItemRequestService.return_request(db, request_id, request)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to return request: {str(e)}"
        )

@router.post(
    "/{request_id}/cancel",
    response_model=TransitionResponse,
    summary="Cancel a request"
)
def cancel_request(
    request_id: int,
    request: ActorRequest,
    db: Session = Depends(get_db)
):
    try:
        return ItemRequestService.cancel_request(db, request_id, request.actor_id)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to cancel request: {str(e)}"
        )

@router.delete(
    "/{request_id}",
    summary="Delete a draft request"
)
def delete_request(
    request_id: int,
    actor_id: int = Query(..., gt=0, description="User performing the action"),
    db: Session = Depends(get_db)
):
    try:
        ItemRequestService.delete_request(db, request_id, actor_id)
        return {"message": "Request deleted successfully"}
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete request: {str(e)}"
        )

@router.get(
    "/{request_id}/current-step",
    response_model=CurrentStepResponse,
    summary="Current approval stage",
    description="Stage the request waits on, its approver, and whether the acting user can act on it"
)
def get_current_step(
    request_id: int,
    actor_id: int = Query(..., gt=0, description="User asking"),
    db: Session = Depends(get_db)
):
    try:
        return ItemRequestService.get_current_step(db, request_id, actor_id)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error retrieving current step: {str(e)}"
        )
