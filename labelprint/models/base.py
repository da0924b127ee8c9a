"""
Shared value types for the remote-backed entities.
"""

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Base class for records exchanged with the label service.

    Unknown fields are ignored so newer service versions stay readable.
    """

    model_config = ConfigDict(extra="ignore")


class Dimensions(BaseModel):
    """Width/height pair in pixels."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(gt=0)
    height: int = Field(gt=0)
