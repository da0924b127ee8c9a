"""
Client domain layer for a remote label printer service.

Usage:
    from labelprint import Image, Printer, client_lifespan

    async with client_lifespan():
        image = await Image.upload(data, "label.png")
        await image.set_threshold(140)
        await Printer.print()
"""

from .core import CacheBust, ClientConfig, TransportPool, cache_buster, client_lifespan, setup_logging
from .core.exceptions import (
    ErrorResponse,
    LabelClientError,
    ServiceUnavailableError,
    TransportError,
    UploadError,
    UseAfterDelete,
)
from .models import Dimensions, Image, Printer

__all__ = [
    "CacheBust",
    "ClientConfig",
    "Dimensions",
    "ErrorResponse",
    "Image",
    "LabelClientError",
    "Printer",
    "ServiceUnavailableError",
    "TransportError",
    "TransportPool",
    "UploadError",
    "UseAfterDelete",
    "cache_buster",
    "client_lifespan",
    "setup_logging",
]
