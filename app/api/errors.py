from fastapi import HTTPException, status as http_status

from app.logic.exceptions import (
    AuthorizationError,
    BaseCustomError,
    DatabaseError,
    InvalidStatusError,
    NoApproverFoundError,
    RequestNotFoundError,
    UserNotFoundError,
    ValidationError,
    WorkflowNotFoundError,
)

STATUS_CODES = (
    ((RequestNotFoundError, UserNotFoundError, WorkflowNotFoundError), http_status.HTTP_404_NOT_FOUND),
    ((AuthorizationError,), http_status.HTTP_403_FORBIDDEN),
    ((ValidationError, InvalidStatusError, NoApproverFoundError), http_status.HTTP_400_BAD_REQUEST),
    ((DatabaseError,), http_status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def http_error(error: BaseCustomError) -> HTTPException:
    """Translate a service error into the HTTPException the routers raise."""
    for error_types, status_code in STATUS_CODES:
        if isinstance(error, error_types):
            return HTTPException(status_code=status_code, detail=error.message)
    return HTTPException(status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error.message)
