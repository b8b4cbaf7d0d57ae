"""MCP Server for vault publishing using stdio transport.

This module implements the Model Context Protocol server that lets an
agent publish vault notes to a GitHub repository.

Transport: stdio
Protocol: JSON-RPC 2.0 over MCP
"""

import argparse
import asyncio
import logging
import sys

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..core.async_utils import run_sync
from ..logger import DEFAULT_MCP_LOG_FILE, setup_logging
from ..session import PublisherSession
from .lifespan import server_lifespan
from .tools import ALL_SPECS, ToolRegistry, build_error_response
from .tools.registry import ToolSpec

logger = logging.getLogger(__name__)

server = Server("vault-publisher")

# Global session instance (initialized in lifespan)
_session: PublisherSession | None = None

# Global registry instance (initialized in main)
_registry: ToolRegistry | None = None


# ---------------------------------------------------------------------------
# Ping tool (always available)
# ---------------------------------------------------------------------------


async def _handle_ping(
    session: PublisherSession, args: dict
) -> types.CallToolResult:
    """Handle ping tool -- test GitHub connectivity."""
    try:
        full_name = await run_sync(session.client.validate_connection)
        return types.CallToolResult(
            content=[
                types.TextContent(
                    type="text",
                    text=f"Vault publisher connected successfully. Repository: {full_name}",
                )
            ]
        )
    except Exception as e:
        return types.CallToolResult(
            content=[
                types.TextContent(
                    type="text",
                    text=f"GitHub connection failed: {e}. Check GITHUB_TOKEN, GITHUB_OWNER, GITHUB_REPO.",
                )
            ],
            isError=True,
        )


PING_SPEC = ToolSpec(
    tool=types.Tool(
        name="ping",
        description="Test GitHub connectivity and return the repository name",
        inputSchema={
            "type": "object",
            "properties": {},
            "required": [],
        },
    ),
    handler=_handle_ping,
)


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_session() -> PublisherSession:
    """Get the global PublisherSession instance.

    Raises:
        RuntimeError: If the session is not initialized
    """
    if _session is None:
        raise RuntimeError(
            "PublisherSession not initialized. Server lifespan not started."
        )
    return _session


def set_session(session: PublisherSession | None) -> None:
    """Set the global PublisherSession instance, or None to clear."""
    global _session
    _session = session


def get_registry() -> ToolRegistry:
    """Get the global ToolRegistry instance.

    Raises:
        RuntimeError: If registry is not initialized
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    """Set the global ToolRegistry instance, or None to clear."""
    global _registry
    _registry = registry


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List every registered tool."""
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Handle tool execution via ToolRegistry dispatch."""
    session = get_session()
    try:
        return await get_registry().call_tool(name, arguments, session)
    except ValueError as e:
        # Unknown or filtered-out tool name
        return build_error_response("unknown_tool", str(e))


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


async def main(config_overrides: dict | None = None):
    """Run the MCP server with stdio transport.

    Sets up file logging (stdout carries the protocol), builds the tool
    registry, validates the GitHub connection via the lifespan manager and
    serves until the client disconnects.

    Args:
        config_overrides: Optional dict with config values to override
            (token, owner, repo, api_url, branch, vault, log_file, read_only)
    """
    overrides = dict(config_overrides or {})
    log_file = overrides.pop("log_file", None)
    read_only = overrides.pop("read_only", False)

    # Must run before stdio_server so nothing reaches stdout
    setup_logging(
        mode="mcp", debug=overrides.get("debug", False), log_file=log_file
    )

    all_specs = [PING_SPEC] + ALL_SPECS
    registry = ToolRegistry(all_specs, read_only=read_only)
    logger.info(
        "Registered %d tools (of %d total)",
        registry.tool_count(),
        len(all_specs),
    )
    if read_only:
        print(
            f"Read-only mode ({registry.tool_count()} of {len(all_specs)} tools enabled)",
            file=sys.stderr,
        )

    set_registry(registry)

    # set_session() is called here rather than in the lifespan so that
    # running this file as __main__ updates the module that serves requests
    async with server_lifespan(config_overrides=overrides or None) as ctx:
        set_session(ctx["session"])
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name="vault-publisher",
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(read_stream, write_stream, init_options)
        finally:
            set_session(None)
            set_registry(None)


def add_connection_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the connection override flags shared with the CLI."""
    parser.add_argument(
        "--token",
        help="Override GitHub token (takes precedence over GITHUB_TOKEN and config files)"
        " (visible in process list -- prefer GITHUB_TOKEN env var)",
    )
    parser.add_argument("--owner", help="Override repository owner")
    parser.add_argument("--repo", help="Override repository name")
    parser.add_argument("--api-url", help="Override GitHub REST API base URL")
    parser.add_argument("--branch", help="Override target branch")
    parser.add_argument("--vault", help="Override vault root directory")
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )


def overrides_from_args(args: argparse.Namespace) -> dict:
    """Collect the connection overrides that were actually given."""
    overrides: dict = {}
    for key in ("token", "owner", "repo", "api_url", "branch", "vault"):
        value = getattr(args, key, None)
        if value:
            overrides[key] = value
    if getattr(args, "debug", False):
        overrides["debug"] = True
    return overrides


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Vault Publisher MCP Server - publish vault notes to GitHub over MCP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with default config (from .env or .vault_publisher/config.yml)
  vault-publisher-mcp

  # Publish a different vault to another repository
  vault-publisher-mcp --vault ~/notes --owner octocat --repo garden

  # Expose only the read-only tools
  vault-publisher-mcp --read-only

Note: This server uses stdio transport for JSON-RPC communication with MCP clients.
All user-facing messages are written to stderr.
        """,
    )
    add_connection_arguments(parser)
    parser.add_argument(
        "--log-file",
        default=DEFAULT_MCP_LOG_FILE,
        help=f"Log file path (default: {DEFAULT_MCP_LOG_FILE})",
    )
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Only register tools that never write to the repository",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"vault-publisher version {__version__}",
    )
    return parser


def serve(config_overrides: dict | None = None) -> None:
    """Run the server until interrupted; exit 1 on startup failure."""
    if config_overrides:
        override_keys = [
            k for k in config_overrides if k not in ("token", "log_file")
        ]
        if override_keys:
            print(
                f"Config overrides from CLI: {', '.join(override_keys)}",
                file=sys.stderr,
            )

    try:
        asyncio.run(main(config_overrides=config_overrides or None))
    except RuntimeError:
        # Error already printed to stderr by lifespan manager
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


def run() -> None:
    """Entry point that parses CLI arguments and starts the server."""
    args = build_parser().parse_args()

    config_overrides = overrides_from_args(args)
    if args.log_file:
        config_overrides["log_file"] = args.log_file
    if args.read_only:
        config_overrides["read_only"] = True

    serve(config_overrides)


if __name__ == "__main__":
    run()
