

class BookingEngineError(Exception):
    """
    Base exception for all domain-level errors
    inside the booking engine.
    """


class InvalidInputError(BookingEngineError):
    """Raised when required fields are missing or malformed."""


class UnauthenticatedError(BookingEngineError):
    """Raised when a bearer credential is missing or cannot be verified."""


class ForbiddenError(BookingEngineError):
    """Raised when the caller's role or ownership does not permit the action."""


class NotFoundError(BookingEngineError):
    """Raised when a vendor, unit, package, user or booking does not exist."""


class BookingConflictError(BookingEngineError):
    """Raised when a requested date range overlaps an active booking."""


class InvalidStateTransitionError(BookingEngineError):
    """
    Raised when an illegal booking or payment state transition is attempted.
    """

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state

        message = (
            f"Illegal state transition attempted: "
            f"{from_state} -> {to_state}"
        )
        super().__init__(message)


class ExternalServiceError(BookingEngineError):
    """Raised when an external collaborator fails."""


class GatewayError(ExternalServiceError):
    """Payment gateway call failed."""


class UploadError(ExternalServiceError):
    """Media store upload failed."""


class SendError(ExternalServiceError):
    """Notification could not be delivered."""
