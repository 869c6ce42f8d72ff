"""Exception types raised across the resolution flow."""

from typing import Optional


class ResolutionError(Exception):
    """Base exception for all Resolution Hub errors."""
    pass


class InvalidStateError(ResolutionError):
    """Raised when a negotiation transition is attempted from a state that does not allow it."""
    pass


class LookupFailure(ResolutionError):
    """Raised when an order or tracking lookup fails or finds nothing."""
    pass


class EmissionFailure(ResolutionError):
    """Raised when the case-creation call fails. The negotiation outcome is kept for retry."""

    def __init__(self, message: str, session_id: Optional[str] = None):
        super().__init__(message)
        self.session_id = session_id


class ValidationError(ResolutionError):
    """Raised when customer input is malformed. Carries every message found."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors
