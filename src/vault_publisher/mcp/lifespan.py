"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from ..core.async_utils import run_sync
from ..session import load_session

logger = logging.getLogger(__name__)

_CREDENTIALS_HINT = "Check GITHUB_TOKEN, GITHUB_OWNER, GITHUB_REPO."


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Build the publisher session (``.env``, YAML config, CLI overrides)
    - Validate the repository is reachable with the configured token
    - Fail fast on either error

    Args:
        config_overrides: Optional dict with config values from CLI
            (token, owner, repo, api_url, branch, vault)

    Yields:
        Dict with 'session' key containing the initialized PublisherSession

    Raises:
        RuntimeError: If configuration is invalid or GitHub is unreachable.
    """
    logger.info("MCP server starting...")
    _stderr_print("Vault Publisher MCP server starting...")

    try:
        session = load_session(config_overrides)
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        _stderr_print(f"  {_CREDENTIALS_HINT}")
        raise RuntimeError(
            f"Configuration error: {e}. {_CREDENTIALS_HINT}"
        ) from e

    _stderr_print(
        f"  Configuration loaded from: {', '.join(session.sources)}"
    )
    _stderr_print(f"  Vault: {session.vault.root}")

    logger.info("Validating GitHub connection...")
    _stderr_print("  Validating GitHub connection...")
    try:
        full_name = await run_sync(session.client.validate_connection)
    except Exception as e:
        logger.error("Failed to connect to GitHub: %s", e)
        _stderr_print("ERROR: GitHub connection failed.")
        _stderr_print(f"  {e}")
        _stderr_print(f"  {_CREDENTIALS_HINT}")
        raise RuntimeError(
            f"GitHub connection failed: {e}. {_CREDENTIALS_HINT}"
        ) from e

    logger.info("Connected to repository %s", full_name)
    _stderr_print(f"  Connected to repository {full_name}")
    _stderr_print("Server ready. Waiting for MCP client connection...")

    yield {"session": session}

    logger.info("MCP server shutting down")
    _stderr_print("Vault Publisher MCP server shutting down.")
