"""Domain layer: errors."""

from .errors import ConfigurationError, ErrorCodes, ViewError, ViewRenderError

__all__ = [
    "ViewError",
    "ViewRenderError",
    "ConfigurationError",
    "ErrorCodes",
]
