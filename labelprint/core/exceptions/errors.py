"""Client exception hierarchy and standardized error records.

Exception Hierarchy:
    LabelClientError (Exception)
    ├── TransportError (non-2xx response from the label service)
    │   └── ServiceUnavailableError (no response at all)
    ├── UploadError (image creation failed or returned a malformed record)
    └── UseAfterDelete (method called on an already deleted image)

Usage:
    try:
        await image.set_threshold(140)
    except TransportError as exc:
        show_error(exc.to_error_response())
"""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standardized error record handed to the UI layer."""

    success: bool = Field(default=False, description="Always False for errors")
    error_code: str = Field(description="Error code identifier")
    message: str = Field(description="Human-readable error message")
    status_code: int | None = Field(default=None, description="HTTP status, if a response arrived")
    detail: dict[str, Any] | None = Field(default=None, description="Additional error details")


class LabelClientError(Exception):
    """Base exception for all label client errors."""

    def __init__(
        self,
        message: str = "An error occurred",
        error_code: str | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.detail = detail

    @property
    def status_code(self) -> int | None:
        return None

    def to_error_response(self) -> ErrorResponse:
        """Convert exception to ErrorResponse object."""
        return ErrorResponse(
            error_code=self.error_code,
            message=self.message,
            status_code=self.status_code,
            detail=self.detail,
        )


class TransportError(LabelClientError):
    """The label service answered with a non-2xx status."""

    def __init__(
        self,
        message: str = "Request to label service failed",
        status_code: int | None = None,
        body: str | None = None,
        error_code: str | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, detail)
        self._status_code = status_code
        self.body = body

    @property
    def status_code(self) -> int | None:
        return self._status_code

    def __str__(self) -> str:
        if self._status_code is None:
            return self.message
        return f"{self.message} (HTTP {self._status_code})"


class ServiceUnavailableError(TransportError):
    """No response was received from the label service."""

    def __init__(
        self,
        message: str = "Label service unavailable",
        error_code: str | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, None, None, error_code, detail)


class UploadError(LabelClientError):
    """Image upload failed or the service returned an incomplete record."""

    def __init__(
        self,
        message: str = "Image upload failed",
        file_name: str | None = None,
        error_code: str | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        error_detail = dict(detail or {})
        if file_name is not None:
            error_detail["file_name"] = file_name
        super().__init__(message, error_code, error_detail or None)
        self.file_name = file_name


class UseAfterDelete(LabelClientError):
    """The image backing this instance has already been deleted."""

    def __init__(self, image_id: str, operation: str) -> None:
        super().__init__(
            f"Image {image_id} was deleted; cannot call {operation}()",
            detail={"image_id": image_id, "operation": operation},
        )
        self.image_id = image_id
        self.operation = operation
