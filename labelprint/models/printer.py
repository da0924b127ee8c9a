"""
Printer snapshot backed by the label service.

The service drives exactly one tape printer. A ``Printer`` is an immutable
snapshot of what the service last reported about it; call ``get()`` or
``refresh()`` again to observe changes.
"""

from __future__ import annotations

from typing import Any, ClassVar

import structlog
from pydantic import AliasChoices, ConfigDict, Field, field_validator

from labelprint.core.cache_bust import CacheBust, cache_buster
from labelprint.core.rest_api import TransportPool

from .base import WireModel

__all__ = ["Printer"]

logger = structlog.get_logger(__name__)


class Printer(WireModel):
    """
    Printer model representing the device and its loaded tape.

    Attributes:
        ty: Printer model identifier
        dpi: Print resolution
        max_pixels: Maximum printable width in pixels (``max_px`` on the wire)
        media_type: Loaded media kind (laminated, non-laminated, ...)
        media_width: Loaded tape width
        tape_color: Tape background colour
        text_color: Ink colour
    """

    model_config = ConfigDict(frozen=True)

    cache_bust: ClassVar[CacheBust] = cache_buster

    ty: str
    dpi: int = Field(gt=0)
    max_pixels: int = Field(gt=0, validation_alias=AliasChoices("max_pixels", "max_px"))
    media_type: str
    media_width: str
    tape_color: str
    text_color: str

    @field_validator("ty", "media_type", "media_width", "tape_color", "text_color", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> Any:
        # Device enums may serialize as numbers (e.g. tape width in mm)
        if isinstance(v, int | float) and not isinstance(v, bool):
            return str(v)
        return v

    @classmethod
    async def get(cls) -> Printer:
        """Current printer state as cached by the service."""
        transport = await TransportPool.get_transport()
        return cls.model_validate(await transport.get("/printer"))

    @classmethod
    async def refresh(cls) -> Printer:
        """Make the service re-query the physical device.

        Slower than ``get()``. A different tape changes how images render,
        so previews are invalidated.
        """
        transport = await TransportPool.get_transport()
        printer = cls.model_validate(await transport.get("/printer/refresh"))
        cls.cache_bust.refresh()
        logger.info(
            "printer_refreshed",
            ty=printer.ty,
            media_width=printer.media_width,
            tape_color=printer.tape_color,
        )
        return printer

    @classmethod
    async def print(cls) -> None:
        """Print the composed label.

        Returns once the service has accepted the job. The service clears its
        images afterwards, so previews are invalidated.
        """
        transport = await TransportPool.get_transport()
        await transport.post("/print")
        cls.cache_bust.refresh()
        logger.info("print_job_accepted")
