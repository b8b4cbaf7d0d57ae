"""MCP tool handlers for vault publishing.

This package contains MCP tool implementations that wrap the publish
engine with async handlers and structured error responses.
"""

from .errors import build_error_response
from .publish import PUBLISH_SPECS, PUBLISH_TOOLS
from .registry import ToolRegistry, ToolSpec

ALL_SPECS: list[ToolSpec] = list(PUBLISH_SPECS)

__all__ = [
    "build_error_response",
    "ToolSpec",
    "ToolRegistry",
    "ALL_SPECS",
    "PUBLISH_SPECS",
    "PUBLISH_TOOLS",
]
