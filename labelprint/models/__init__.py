"""
Remote-backed domain entities for the label printer service.
"""

from .base import Dimensions
from .image import Image, ImageRecord
from .printer import Printer

__all__: list[str] = ["Dimensions", "Image", "ImageRecord", "Printer"]
