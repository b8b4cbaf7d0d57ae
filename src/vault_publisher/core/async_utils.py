"""Async bridge for the blocking ``requests`` client."""

import asyncio
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    The publish engine awaits every remote call through this helper, so at
    most one call is in flight per publish operation.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        client = GitHubClient(config)
        sha = await run_sync(client.get_existing, "notes/Idea.md")
    """
    return await asyncio.to_thread(func, *args, **kwargs)
