"""ToolSpec and ToolRegistry for MCP tool dispatch.

Key concepts:
- ToolSpec: Immutable dataclass linking a Tool definition, whether the tool
  changes the remote repository, and an async handler with standardized
  signature (session, args) -> CallToolResult.
- ToolRegistry: Drops mutating specs in read-only mode at construction
  time, then provides list_tools() and call_tool() dispatch with error
  translation.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import mcp.types as types

from ...core.client import RemoteConflictError, RemoteError

if TYPE_CHECKING:
    from ...session import PublisherSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """Immutable specification for a single MCP tool.

    Attributes:
        tool: The MCP Tool definition (name, description, inputSchema).
        handler: Async handler with signature (session, args) -> CallToolResult.
        mutating: True if the tool writes to the remote repository.
    """

    tool: types.Tool
    handler: Callable[
        [PublisherSession, dict], Awaitable[types.CallToolResult]
    ]
    mutating: bool = False


class ToolRegistry:
    """Registry of ToolSpecs with optional read-only filtering."""

    def __init__(self, specs: list[ToolSpec], read_only: bool = False):
        self._specs: dict[str, ToolSpec] = {}
        for spec in specs:
            if read_only and spec.mutating:
                continue
            self._specs[spec.tool.name] = spec

    def list_tools(self) -> list[types.Tool]:
        """Return list of types.Tool for all registered specs."""
        return [spec.tool for spec in self._specs.values()]

    def tool_count(self) -> int:
        """Return number of registered tools."""
        return len(self._specs)

    async def call_tool(
        self,
        name: str,
        arguments: dict | None,
        session: PublisherSession,
    ) -> types.CallToolResult:
        """Dispatch tool call to registered handler.

        Translates validation errors, remote failures and unexpected
        exceptions into structured CallToolResult responses.

        Raises:
            ValueError: If tool name is not registered (unknown or filtered out).
        """
        from .errors import build_error_response

        spec = self._specs.get(name)
        if spec is None:
            raise ValueError(f"Unknown tool: {name}")
        args = arguments or {}
        try:
            return await spec.handler(session, args)
        except ValueError as e:
            return build_error_response("validation_error", str(e))
        except RemoteConflictError as e:
            logger.warning("Version conflict in %s: %s", name, e)
            return build_error_response("version_conflict", str(e))
        except RemoteError as e:
            logger.warning("Remote error in %s: %s", name, e)
            return build_error_response("remote_error", str(e))
        except Exception as e:
            logger.exception("Unexpected error in tool %s", name)
            return build_error_response("server_error", str(e))
