from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class RemoteUnavailableError(AppException):
    """Remote backend could not be reached or answered with a server error."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=503,
            error_code="REMOTE_UNAVAILABLE",
            details=details
        )

class RemoteWriteError(AppException):
    """Remote backend was reachable but rejected the write."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=502,
            error_code="REMOTE_WRITE_FAILED",
            details=details
        )

class NotFoundError(AppException):
    def __init__(self, entity: str, key: str):
        super().__init__(
            message=f"{entity} '{key}' not found",
            status_code=404,
            error_code="NOT_FOUND",
            details={"entity": entity, "key": key}
        )

class UsernameUnavailableError(AppException):
    def __init__(self, base_username: str, attempts: int):
        super().__init__(
            message=(
                f"Could not find a free username for '{base_username}' after {attempts} attempts. "
                "Try again or link an existing user manually."
            ),
            status_code=409,
            error_code="USERNAME_UNAVAILABLE",
            details={"base_username": base_username, "attempts": attempts}
        )

class InvalidTransitionError(AppException):
    """Lifecycle violation: status regression, reused link, resubmitted appraisal."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code="INVALID_TRANSITION",
            details=details
        )

class SessionInvalidError(AppException):
    def __init__(self, message: str = "Session is no longer valid"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="SESSION_INVALID"
        )
