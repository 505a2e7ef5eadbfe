"""Error taxonomy shared by every stage of the voice pipeline."""

from __future__ import annotations


class VoicePipelineError(Exception):
    """Base class for recoverable pipeline failures.

    ``description`` is the user-facing sentence; it is what the assistant
    reads back when a turn fails.
    """

    default_description = "Something went wrong"

    def __init__(self, description: str | None = None) -> None:
        self.description = description or self.default_description
        super().__init__(self.description)


class PermissionDenied(VoicePipelineError):
    default_description = "Microphone or speech recognition access not authorized. Please enable it in Settings."


class Unavailable(VoicePipelineError):
    default_description = "Speech recognition is not available on this device."


class NoCredential(VoicePipelineError):
    default_description = "No API key configured"


class RateLimited(VoicePipelineError):
    default_description = "Rate limited. Please try again later."


class ServiceUnavailable(VoicePipelineError):
    default_description = "Service temporarily unavailable"


class DecodeFailure(VoicePipelineError):
    default_description = "Could not decode the service response"


class NetworkFailure(VoicePipelineError):
    default_description = "Network error"


class InvalidResponse(VoicePipelineError):
    default_description = "Invalid response from service"


class RecordingFailed(VoicePipelineError):
    default_description = "Failed to start recording."


class InvalidTransition(VoicePipelineError):
    default_description = "Operation not allowed in the current dictation state"


class DataFacadeError(VoicePipelineError):
    """Failure reported by the calendar/client data store."""

    default_description = "The practice data service returned an error"


class NotFound(DataFacadeError):
    default_description = "Record not found"


class DataServiceUnavailable(DataFacadeError, ServiceUnavailable):
    default_description = "The practice data service is temporarily unavailable"


class DataNetworkFailure(DataFacadeError, NetworkFailure):
    default_description = "Could not reach the practice data service"


# Names used by the speech capture contract.
NotAuthorized = PermissionDenied
NotAvailable = Unavailable
