"""GitHub client functionality shared between the CLI and the MCP server."""

from .async_utils import run_sync
from .client import GitHubClient, RemoteConflictError, RemoteError

__all__ = [
    "GitHubClient",
    "RemoteConflictError",
    "RemoteError",
    "run_sync",
]
