class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None, headers: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.headers = headers
        super().__init__(self.message)

class ValidationError(AppError):
    """Raised when a request is malformed. Never retried."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class UndoNotFound(ResourceNotFoundError):
    """Raised when the entry an undo targets no longer exists."""
    def __init__(self, entry_id: str):
        super().__init__("Schedule entry", entry_id)
        self.details = {"entryId": entry_id}

class CompletionUnavailable(AppError):
    """Raised when the text-completion service cannot produce a reply (network, quota or timeout)."""
    def __init__(self, message: str = "The AI assistant is temporarily unavailable. Please try again shortly."):
        super().__init__(message, status_code=500, details={"retryable": True})

class ApplyFailure(AppError):
    """Raised when a modification batch cannot be committed. Nothing was written."""
    def __init__(self, message: str, details: dict = None, status_code: int = 500):
        super().__init__(message, status_code=status_code, details=details)

class StaleModification(ApplyFailure):
    """Raised when a persisted entry no longer matches the state a modification was proposed against."""
    def __init__(self, entry_id: str, fields: list[str]):
        super().__init__(
            f"Schedule entry {entry_id} changed since the modification was proposed",
            details={"entryId": entry_id, "fields": fields},
            status_code=409,
        )

class RateLimitExceeded(AppError):
    def __init__(self, scope: str, retry_after: int):
        super().__init__(
            f"Too many requests for {scope}. Try again in {retry_after} second(s).",
            status_code=429,
            details={"retryAfter": retry_after},
            headers={"Retry-After": str(retry_after)},
        )

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
