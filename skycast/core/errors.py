from __future__ import annotations


class SkyCastError(Exception):
    """Base class for failures surfaced to gateway callers and the UI shell."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(SkyCastError):
    status_code = 400
    default_message = "City name or coordinates are required"


class UpstreamError(SkyCastError):
    """The weather provider rejected the request or could not be reached.

    ``status_code`` carries the provider's own status when it answered, else 500.
    """

    default_message = "Weather API call failed"


class NotFoundError(UpstreamError):
    status_code = 404
    default_message = "City not found"


class LocationPermissionError(SkyCastError):
    status_code = 403
    default_message = "Failed to get location"
