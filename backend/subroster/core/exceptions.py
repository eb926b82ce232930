class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Raised for malformed dates, missing fields, out-of-enum values or inverted ranges."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class ConflictError(AppError):
    """Raised when a write would double-book a substitute or duplicate a recurrence."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)


class NotFoundError(AppError):
    """Raised when a requested resource is not found or lies outside the caller's scope."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": str(resource_id)},
        )


class AuthorizationError(AppError):
    """Raised when the acting user may not perform the operation."""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, status_code=403)
