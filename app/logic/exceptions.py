from typing import Optional

class BaseCustomError(Exception):
    """Base exception class for custom errors"""
    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)

class DatabaseError(BaseCustomError):
    """Raised when database operations fail"""
    def __init__(self, message: str):
        super().__init__(message, "DATABASE_ERROR")

class ValidationError(BaseCustomError):
    """Raised when validation fails"""
    def __init__(self, message: str):
        super().__init__(message, "VALIDATION_ERROR")

class AuthorizationError(BaseCustomError):
    """Raised when the acting user may not perform an action"""
    def __init__(self, message: str):
        super().__init__(message, "AUTHORIZATION_ERROR")

class UserNotFoundError(BaseCustomError):
    """Raised when a user is not found"""
    def __init__(self, message: str):
        super().__init__(message, "USER_NOT_FOUND")

class RequestNotFoundError(BaseCustomError):
    """Raised when an item or vehicle request is not found"""
    def __init__(self, message: str):
        super().__init__(message, "REQUEST_NOT_FOUND")

class WorkflowNotFoundError(BaseCustomError):
    """Raised when a workflow is not found"""
    def __init__(self, message: str):
        super().__init__(message, "WORKFLOW_NOT_FOUND")

class InvalidStatusError(BaseCustomError):
    """Raised when a request is not in a status that allows the action"""
    def __init__(self, message: str):
        super().__init__(message, "INVALID_STATUS")

class NoApproverFoundError(BaseCustomError):
    """Raised when no active approver can be resolved for a request"""
    def __init__(self, message: str = "No active approver found for this request. Please contact your administrator."):
        super().__init__(message, "NO_APPROVER_FOUND")
