"""MCP tool handlers for publishing vault notes.

Defines three tools:

- ``publish_document`` -- publish a single note (with optional dry-run).
- ``publish_all`` -- publish every shareable note.
- ``publish_status`` -- list the notes recorded in the ledger.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import mcp.types as types

from ...publish.reporter import (
    format_ledger_status,
    format_publish_report,
    format_publish_result,
    ledger_to_json,
    report_to_json,
    result_to_json,
)
from .errors import build_error_response
from .registry import ToolSpec

if TYPE_CHECKING:
    from ...session import PublisherSession

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------


PUBLISH_TOOLS: list[types.Tool] = [
    types.Tool(
        name="publish_document",
        description=(
            "Publish one vault note (and its local images) to the GitHub "
            "repository. The note must carry the share marker in its "
            "front matter. A renamed note replaces its old remote file."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=True,
            idempotentHint=True,
            openWorldHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Vault-relative path of the note (e.g. Notes/Idea.md)",
                },
                "dry_run": {
                    "type": "boolean",
                    "default": False,
                    "description": "Resolve the remote path without publishing",
                },
            },
            "required": ["path"],
        },
    ),
    types.Tool(
        name="publish_all",
        description=(
            "Publish every shareable note in the vault, one at a time. "
            "A failing note is reported and the run continues."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=True,
            idempotentHint=True,
            openWorldHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "dry_run": {
                    "type": "boolean",
                    "default": False,
                    "description": "Preview without publishing",
                },
            },
            "required": [],
        },
    ),
    types.Tool(
        name="publish_status",
        description=(
            "List published notes from the ledger with their remote path "
            "and last publish time."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Only list notes whose path contains this text",
                },
            },
            "required": [],
        },
    ),
]


# ---------------------------------------------------------------------------
# Individual handlers
# ---------------------------------------------------------------------------


async def _handle_publish_document(
    session: PublisherSession, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``publish_document`` tool."""
    path = args.get("path")
    if not path or not isinstance(path, str):
        return build_error_response(
            "validation_error",
            "path is required",
            "Provide the vault-relative 'path' of a note.",
        )

    dry_run = bool(args.get("dry_run", False))
    logger.info("publish_document %s (dry_run=%s)", path.strip(), dry_run)
    result = await session.engine.publish_document(
        path.strip(), dry_run=dry_run
    )
    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text=format_publish_result(result))
        ],
        structuredContent=result_to_json(result),
        isError=not result.success,
    )


async def _handle_publish_all(
    session: PublisherSession, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``publish_all`` tool."""
    dry_run = bool(args.get("dry_run", False))
    logger.info("publish_all (dry_run=%s)", dry_run)
    report = await session.engine.publish_all(dry_run=dry_run)
    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text=format_publish_report(report))
        ],
        structuredContent=report_to_json(report),
    )


async def _handle_publish_status(
    session: PublisherSession, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``publish_status`` tool."""
    records = session.engine.ledger_status()
    query = (args.get("query") or "").strip().lower()
    if query:
        records = [r for r in records if query in r.local_path.lower()]

    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text=format_ledger_status(records))
        ],
        structuredContent=ledger_to_json(records),
    )


PUBLISH_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=PUBLISH_TOOLS[0],
        handler=_handle_publish_document,
        mutating=True,
    ),
    ToolSpec(
        tool=PUBLISH_TOOLS[1],
        handler=_handle_publish_all,
        mutating=True,
    ),
    ToolSpec(tool=PUBLISH_TOOLS[2], handler=_handle_publish_status),
]
