"""Error kinds raised by the relay and mapped to HTTP responses by the app."""

from __future__ import annotations

from typing import Optional


class RelayError(Exception):
    """Base class for failures that end a request."""

    status_code = 500
    default_message = "An unexpected error occurred."

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RelayError):
    """Required input is missing."""

    status_code = 400
    default_message = "Invalid request."


class UnsupportedMediaTypeError(RelayError):
    status_code = 400
    default_message = "Unsupported file type."


class UpstreamAPIError(RelayError):
    """The model API answered with an error object; its message is kept verbatim."""

    status_code = 400
    default_message = "The model API reported an error."


class TransportError(RelayError):
    status_code = 500
    default_message = "Failed to reach the model API."


class ProcessingError(RelayError):
    status_code = 500
    default_message = "Failed to process the file."


class ConfigurationError(RelayError):
    status_code = 500
    default_message = "The model API key is not configured."
