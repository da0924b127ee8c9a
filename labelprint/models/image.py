"""
Image entity backed by the label service.

An ``Image`` mirrors one uploaded raster held by the service. Processing
(scaling to tape height, thresholding, inversion) happens server-side; this
class only requests it and keeps the local fields in step with the last
acknowledged server state.

Optimistic updates:
    ``invert()`` and ``set_threshold()`` change the local field before the
    request is sent and restore the previous value if the request fails or
    the calling task is cancelled before the service answers.

Serialization:
    Mutating calls on one instance hold a per-instance asyncio lock, so at most
    one mutating request is outstanding and calls reach the service in the
    order they were issued. The optimistic value is applied once a call gets
    the lock. Separate instances with the same id (e.g. from two ``list()``
    calls) are not coordinated; the last response to land wins.
"""

from __future__ import annotations

import asyncio
import mimetypes
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, ClassVar

import structlog
from pydantic import Field, ValidationError

from labelprint.core.cache_bust import CacheBust, cache_buster
from labelprint.core.exceptions import TransportError, UploadError, UseAfterDelete
from labelprint.core.rest_api import TransportPool

from .base import Dimensions, WireModel

__all__ = ["Image", "ImageRecord", "InvertUpdate", "ThresholdUpdate"]

logger = structlog.get_logger(__name__)

THRESHOLD_MIN = 0
THRESHOLD_MAX = 255


class ImageRecord(WireModel):
    """Image as serialized by the service (flat snake_case fields)."""

    id: str = Field(min_length=1)
    file_name: str
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    original_width: int = Field(gt=0)
    original_height: int = Field(gt=0)
    length_mm: float = Field(ge=0)
    threshold: int = Field(ge=THRESHOLD_MIN, le=THRESHOLD_MAX)
    inverted: bool


class InvertUpdate(WireModel):
    invert: bool


class ThresholdUpdate(WireModel):
    threshold: int = Field(strict=True, ge=THRESHOLD_MIN, le=THRESHOLD_MAX)


class Image:
    """
    One uploaded image held by the label service.

    Attributes:
        id: Server-assigned identifier, immutable
        file_name: Name the file was uploaded under (extension stripped by the service)
        dimensions: Current processed size in pixels
        original_dimensions: Size recorded at upload time, immutable
        length_mm: Printed length on tape
        threshold: Binarization threshold (0-255)
        inverted: Whether colors are inverted for printing
    """

    cache_bust: ClassVar[CacheBust] = cache_buster

    def __init__(self, record: ImageRecord) -> None:
        self._id = record.id
        self._file_name = record.file_name
        self._original_dimensions = Dimensions(
            width=record.original_width, height=record.original_height
        )
        self._dimensions = Dimensions(width=record.width, height=record.height)
        self._length_mm = record.length_mm
        self._threshold = record.threshold
        self._inverted = record.inverted
        self._deleted = False
        self._lock = asyncio.Lock()

    @classmethod
    def from_wire(cls, data: Any) -> Image:
        """Build an Image from a raw service record."""
        return cls(ImageRecord.model_validate(data))

    def __repr__(self) -> str:
        state = "deleted" if self._deleted else f"threshold={self._threshold}, inverted={self._inverted}"
        return f"<Image(id='{self._id}', file_name='{self._file_name}', {state})>"

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def file_name(self) -> str:
        return self._file_name

    @property
    def dimensions(self) -> Dimensions:
        return self._dimensions

    @property
    def original_dimensions(self) -> Dimensions:
        return self._original_dimensions

    @property
    def length_mm(self) -> float:
        return self._length_mm

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def inverted(self) -> bool:
        return self._inverted

    @property
    def is_deleted(self) -> bool:
        return self._deleted

    @property
    def path(self) -> str:
        """Resource path relative to the service origin."""
        return f"/images/{self._id}"

    @property
    def url(self) -> str:
        return f"{TransportPool.base_url()}{self.path}"

    @property
    def src(self) -> str:
        """Image URL with the current cache key, for <img> elements."""
        return self.cache_bust.apply(self.url)

    @classmethod
    def preview_url(cls) -> str:
        """URL of the composed label preview (independent of any image)."""
        return f"{TransportPool.base_url()}/preview"

    @classmethod
    def preview_src(cls) -> str:
        return cls.cache_bust.apply(cls.preview_url())

    # -------------------------------------------------------------------------
    # Collection operations
    # -------------------------------------------------------------------------

    @classmethod
    async def list(cls) -> list[Image]:
        """Fetch every image known to the service as fresh instances."""
        transport = await TransportPool.get_transport()
        data = await transport.get("/images")
        images = [cls.from_wire(item) for item in data or []]
        logger.debug("images_listed", count=len(images))
        return images

    @classmethod
    async def upload(
        cls,
        file_bytes: bytes,
        file_name: str,
        content_type: str | None = None,
    ) -> Image:
        """Upload raw image bytes as a multipart ``file`` field.

        Args:
            file_bytes: Encoded image file content (PNG, JPEG, ...)
            file_name: Original file name, sent as the multipart filename
            content_type: MIME type; guessed from file_name when omitted

        Returns:
            The newly created Image

        Raises:
            UploadError: Empty content, transport failure, or an incomplete
                record in the response
        """
        if not file_bytes:
            raise UploadError(f"Refusing to upload empty file {file_name}", file_name=file_name)

        content_type = content_type or mimetypes.guess_type(file_name)[0] or "application/octet-stream"
        transport = await TransportPool.get_transport()

        try:
            data = await transport.post(
                "/images", files={"file": (file_name, file_bytes, content_type)}
            )
        except TransportError as exc:
            logger.error("image_upload_failed", file_name=file_name, status_code=exc.status_code)
            raise UploadError(
                f"Upload of {file_name} failed",
                file_name=file_name,
                detail={"status_code": exc.status_code},
            ) from exc

        try:
            image = cls.from_wire(data)
        except ValidationError as exc:
            logger.error("image_upload_malformed", file_name=file_name, errors=exc.error_count())
            raise UploadError(
                f"Service returned an incomplete image record for {file_name}",
                file_name=file_name,
                detail={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc

        cls.cache_bust.refresh()
        logger.info("image_uploaded", image_id=image.id, file_name=image.file_name)
        return image

    @classmethod
    async def delete_all(cls) -> None:
        """Remove every image from the service.

        Existing instances are not marked deleted; re-fetch with ``list()``.
        """
        transport = await TransportPool.get_transport()
        await transport.delete("/images")
        cls.cache_bust.refresh()
        logger.info("images_cleared")

    @classmethod
    async def fetch_preview(cls) -> bytes:
        """PNG of the composed label as it would be printed."""
        transport = await TransportPool.get_transport()
        return await transport.get_bytes("/preview", params={"cache": cls.cache_bust.value})

    # -------------------------------------------------------------------------
    # Instance operations
    # -------------------------------------------------------------------------

    def _ensure_alive(self, operation: str) -> None:
        if self._deleted:
            raise UseAfterDelete(self._id, operation)

    @asynccontextmanager
    async def _exclusive(self, operation: str) -> AsyncIterator[None]:
        """Hold the instance lock for one mutating call."""
        self._ensure_alive(operation)
        async with self._lock:
            # A delete may have completed while this call was waiting
            self._ensure_alive(operation)
            yield

    async def fetch_png(self) -> bytes:
        """PNG of this image as processed by the service."""
        self._ensure_alive("fetch_png")
        transport = await TransportPool.get_transport()
        return await transport.get_bytes(self.path, params={"cache": self.cache_bust.value})

    async def delete(self) -> None:
        """Delete the image on the service; the instance is unusable afterwards."""
        async with self._exclusive("delete"):
            transport = await TransportPool.get_transport()
            await transport.delete(self.path)
            self._deleted = True

        self.cache_bust.refresh()
        logger.info("image_deleted", image_id=self._id)

    async def invert(self) -> None:
        """Toggle inversion, rolling back the local flag if the request fails."""
        async with self._exclusive("invert"):
            transport = await TransportPool.get_transport()
            previous = self._inverted
            self._inverted = not previous

            try:
                await transport.post(
                    f"{self.path}/invert", InvertUpdate(invert=self._inverted).model_dump()
                )
            except BaseException:
                self._inverted = previous
                logger.warning("image_invert_rolled_back", image_id=self._id, inverted=previous)
                raise

        self.cache_bust.refresh()
        logger.info("image_inverted", image_id=self._id, inverted=self._inverted)

    async def set_threshold(self, value: int) -> None:
        """Set the binarization threshold, rolling back if the request fails.

        Raises:
            pydantic.ValidationError: value is not a plain int in 0-255; bools and
                numeric strings are rejected
        """
        self._ensure_alive("set_threshold")
        update = ThresholdUpdate(threshold=value)

        async with self._exclusive("set_threshold"):
            transport = await TransportPool.get_transport()
            previous = self._threshold
            self._threshold = update.threshold

            try:
                await transport.post(f"{self.path}/threshold", update.model_dump())
            except BaseException:
                self._threshold = previous
                logger.warning("image_threshold_rolled_back", image_id=self._id, threshold=previous)
                raise

        self.cache_bust.refresh()
        logger.info("image_threshold_set", image_id=self._id, threshold=self._threshold)
