"""Error taxonomy shared by the call and billing services."""
from typing import Optional


class CallDashboardError(Exception):
    """Base class for every error surfaced to the dashboard user."""

    default_message = "Unexpected error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class PermissionDenied(CallDashboardError):
    default_message = (
        "Microphone access was denied. Please allow microphone access and try again."
    )


class DeviceNotFound(CallDashboardError):
    default_message = "No microphone found. Please connect a microphone and try again."


class InsecureContext(CallDashboardError):
    default_message = "Microphone access requires a secure context (HTTPS or localhost)"


class ApiUnavailable(CallDashboardError):
    default_message = (
        "Failed to access microphone. Please ensure no other apps are using it."
    )


class InvalidAgent(CallDashboardError):
    default_message = "agent_id is required"


class SessionStateError(CallDashboardError):
    """Raised when the call lifecycle is driven out of order."""

    default_message = "Invalid call session state"


class ConfigurationError(CallDashboardError):
    default_message = "API key configuration error"


class UpstreamError(CallDashboardError):
    """A provider returned a failure or a response we could not trust."""

    def __init__(self, status: int, body: str, message: Optional[str] = None):
        self.status = status
        self.body = body
        super().__init__(message or f"{status} - {body}")
