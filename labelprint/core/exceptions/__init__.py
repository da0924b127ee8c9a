"""Exception handling package for the label client.

Provides the client exception hierarchy and the error record rendered by callers.
"""

from .errors import (
    ErrorResponse,
    LabelClientError,
    ServiceUnavailableError,
    TransportError,
    UploadError,
    UseAfterDelete,
)

__all__ = [
    # Models
    "ErrorResponse",
    # Base exception
    "LabelClientError",
    # Transport (HTTP) errors
    "ServiceUnavailableError",
    "TransportError",
    # Domain errors
    "UploadError",
    "UseAfterDelete",
]
