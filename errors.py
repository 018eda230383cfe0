"""Domain errors raised by the AgroCrédito services.

Routers do not catch these; ``main.py`` registers one handler that maps
each class to its HTTP status.
"""


class AgroCreditoError(Exception):
    """Base exception for all AgroCrédito domain errors."""

    status_code = 400
    error_code = "error"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class InvalidInput(AgroCreditoError):
    """Raised when the loan calculator receives a non-positive principal/term or a negative rate."""

    error_code = "invalid_input"


class ValidationError(AgroCreditoError):
    """Raised when request data breaks a business rule (program bounds, missing reason, ...)."""

    error_code = "validation_error"


class NotFound(AgroCreditoError):
    """Raised when a referenced record does not exist."""

    status_code = 404
    error_code = "not_found"


class InvalidStateTransition(AgroCreditoError):
    """Raised when a status change is not allowed from the application's current status."""

    status_code = 409
    error_code = "invalid_state_transition"

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot move application from '{current}' to '{target}'",
            {"current_status": current, "target_status": target},
        )


class ConcurrentModification(AgroCreditoError):
    """Raised when a guarded update finds the record already changed by another actor."""

    status_code = 409
    error_code = "concurrent_modification"
    retryable = True


class PersistenceFailure(AgroCreditoError):
    """Raised when the database fails during a unit of work; nothing was applied."""

    status_code = 503
    error_code = "persistence_failure"
