"""Enumeration definitions for the label printer client."""

from enum import Enum


class Environment(str, Enum):
    """Application environment types."""

    LOCAL = "local"
    DEV = "dev"
    PROD = "prod"


class LogFormat(str, Enum):
    """Log renderer selection."""

    CONSOLE = "console"
    JSON = "json"
