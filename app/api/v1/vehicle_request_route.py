from fastapi import APIRouter, Depends, HTTPException, Query, status as http_status
from sqlalchemy.orm import Session
from typing import Optional

from app.api.errors import http_error
from app.database.database import get_db
from app.database.services.vehicle_request_service import VehicleRequestService
from app.ReqResModels.requestmodels import (
    ActorRequest,
    CurrentStepResponse,
    RequestErrorResponse,
    RequestStatsResponse,
    TransitionResponse,
)
from app.ReqResModels.vehiclerequestmodels import (
    ApproveVehicleRequest,
    AssignVehicleRequest,
    CreateVehicleRequest,
    UpdateVehicleRequest,
    VehicleReasonRequest,
    VehicleRequestListResponse,
    VehicleRequestQueryParams,
    VehicleRequestResponse,
)
from app.logic.exceptions import BaseCustomError

router = APIRouter(
    prefix="/vehicle-requests",
    tags=["vehicle requests"],
    responses={
        400: {"model": RequestErrorResponse, "description": "Bad request"},
        403: {"model": RequestErrorResponse, "description": "Not allowed"},
        404: {"model": RequestErrorResponse, "description": "Vehicle request not found"},
        500: {"model": RequestErrorResponse, "description": "Internal server error"}
    }
)

@router.post(
    "/",
    response_model=VehicleRequestResponse,
    status_code=http_status.HTTP_201_CREATED,
    summary="Create a service vehicle request"
)
def create_request(
    request: CreateVehicleRequest,
    db: Session = Depends(get_db)
):
    try:
        return VehicleRequestService.create_request(db, request)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create vehicle request: {str(e)}"
        )

@router.get(
    "/",
    response_model=VehicleRequestListResponse,
    summary="List vehicle requests",
    description="Requests visible to the acting user, flagging those waiting on their approval"
)
def list_requests(
    actor_id: int = Query(..., gt=0, description="Acting user"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Number of items per page"),
    status: Optional[str] = Query(None, description="Filter by request status"),
    department_id: Optional[int] = Query(None, description="Filter by department"),
    search: Optional[str] = Query(None, description="Search requestor name, reference code and destination"),
    db: Session = Depends(get_db)
):
    try:
        params = VehicleRequestQueryParams(
            actor_id=actor_id,
            page=page,
            page_size=page_size,
            status=status,
            department_id=department_id,
            search=search
        )
        return VehicleRequestService.list_requests(db, params)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error retrieving vehicle requests: {str(e)}"
        )

@router.get(
    "/stats/overview",
    response_model=RequestStatsResponse,
    summary="Vehicle request statistics"
)
def get_stats(
    actor_id: int = Query(..., gt=0, description="Acting user"),
    db: Session = Depends(get_db)
):
    try:
        return VehicleRequestService.get_stats(db, actor_id)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error retrieving vehicle request statistics: {str(e)}"
        )

@router.get(
    "/track/{reference_code}",
    response_model=VehicleRequestResponse,
    summary="Track a request by reference code"
)
def track_request(
    reference_code: str,
    db: Session = Depends(get_db)
):
    try:
        return VehicleRequestService.get_by_reference_code(db, reference_code)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error tracking vehicle request: {str(e)}"
        )

@router.get(
    "/{request_id}",
    response_model=VehicleRequestResponse,
    summary="Get vehicle request by ID"
)
def get_request(
    request_id: int,
    db: Session = Depends(get_db)
):
    try:
        return VehicleRequestService.get_request(db, request_id)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error retrieving vehicle request: {str(e)}"
        )

@router.put(
    "/{request_id}",
    response_model=VehicleRequestResponse,
    summary="Update a vehicle request"
)
def update_request(
    request_id: int,
    request: UpdateVehicleRequest,
    db: Session = Depends(get_db)
):
    try:
        return VehicleRequestService.update_request(db, request_id, request)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update vehicle request: {str(e)}"
        )

@router.post(
    "/{request_id}/submit",
    response_model=TransitionResponse,
    summary="Submit a vehicle request"
)
def submit_request(
    request_id: int,
    request: ActorRequest,
    db: Session = Depends(get_db)
):
    try:
        return VehicleRequestService.submit_request(db, request_id, request.actor_id)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to submit vehicle request: {str(e)}"
        )

@router.post(
    "/{request_id}/approve",
    response_model=TransitionResponse,
    summary="Approve the current step"
)
def approve_request(
    request_id: int,
    request: ApproveVehicleRequest,
    db: Session = Depends(get_db)
):
    try:
        return VehicleRequestService.approve_request(db, request_id, request)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to approve vehicle request: {str(e)}"
        )

@router.post(
    "/{request_id}/decline",
    response_model=TransitionResponse,
    summary="Decline a vehicle request"
)
def decline_request(
    request_id: int,
    request: VehicleReasonRequest,
    db: Session = Depends(get_db)
):
    try:
        return VehicleRequestService.decline_request(db, request_id, request)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to decline vehicle request: {str(e)}"
        )

@router.post(
    "/{request_id}/return",
    response_model=TransitionResponse,
    summary="Return a vehicle request for revision"
)
def return_request(
    request_id: int,
    request: VehicleReasonRequest,
    db: Session = Depends(get_db)
):
    try:
        return VehicleRequestService.return_request(db, request_id, request)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to return vehicle request: {str(e)}"
        )

@router.post(
    "/{request_id}/cancel",
    response_model=TransitionResponse,
    summary="Cancel a vehicle request"
)
def cancel_request(
    request_id: int,
    request: ActorRequest,
    db: Session = Depends(get_db)
):
    try:
        return VehicleRequestService.cancel_request(db, request_id, request.actor_id)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to cancel vehicle request: {str(e)}"
        )

@router.post(
    "/{request_id}/assign",
    response_model=VehicleRequestResponse,
    summary="Assign a driver and vehicle",
    description="Vehicle department approvers record the trip assignment before approving"
)
def assign_vehicle(
    request_id: int,
    request: AssignVehicleRequest,
    db: Session = Depends(get_db)
):
    try:
        return VehicleRequestService.assign_vehicle(db, request_id, request)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to assign vehicle: {str(e)}"
        )

@router.delete(
    "/{request_id}",
    summary="Delete a vehicle request",
    description="Requestors delete their drafts; administrators can delete any request"
)
def delete_request(
    request_id: int,
    actor_id: int = Query(..., gt=0, description="User performing the action"),
    db: Session = Depends(get_db)
):
    try:
        VehicleRequestService.delete_request(db, request_id, actor_id)
        return {"message": "Service vehicle request deleted successfully"}
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete vehicle request: {str(e)}"
        )

@router.get(
    "/{request_id}/current-step",
    response_model=CurrentStepResponse,
    summary="Current workflow step"
)
def get_current_step(
    request_id: int,
    actor_id: int = Query(..., gt=0, description="User asking"),
    db: Session = Depends(get_db)
):
    try:
        return VehicleRequestService.get_current_step(db, request_id, actor_id)
    except BaseCustomError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error retrieving current step: {str(e)}"
        )
