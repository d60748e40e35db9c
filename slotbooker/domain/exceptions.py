"""
Domain-specific exception hierarchy for the slotbooker application.
"""


class SlotBookerError(Exception):
    """Base class for all application-level errors."""


class ValidationError(SlotBookerError):
    """Raised when request input is missing or malformed."""


class InvalidDateError(ValidationError):
    """Raised when a calendar date cannot be parsed."""


class InvalidTimeError(ValidationError):
    """Raised when a wall-clock time cannot be parsed."""


class InvalidDurationError(ValidationError):
    """Raised when a service duration is not a positive number of minutes."""


class SlotConflictError(SlotBookerError):
    """Raised when a requested booking collides with an existing busy interval."""

    def __init__(self, requested, conflicting=None):
        self.requested = requested
        self.conflicting = conflicting
        super().__init__("slot no longer available")


class GatewayError(SlotBookerError):
    """Raised when calendar data cannot be fetched or an event cannot be created."""


class AuthenticationError(GatewayError):
    """Raised when credentials cannot be obtained or refreshed."""


class ConfigurationError(SlotBookerError):
    """Raised when required configuration or credentials are missing or invalid."""
