"""
Async wrappers for Docker SDK to prevent event loop blocking.

The official Docker SDK (docker-py) is synchronous. These wrappers use asyncio.to_thread()
to run blocking calls in a thread pool, keeping the asyncio event loop responsive
while containers are inspected during a poll.

Usage:
    from utils.async_docker import async_docker_call

    summaries = await async_docker_call(client.api.containers)
    details = await async_docker_call(client.api.inspect_container, container_id)
"""

import asyncio
from typing import Callable, TypeVar

# Type variable for generic return types
T = TypeVar('T')


async def async_docker_call(sync_fn: Callable[..., T], *args, **kwargs) -> T:
    """
    Execute a synchronous Docker SDK call in a thread pool.

    Uses asyncio.to_thread(), which delegates to the default ThreadPoolExecutor.
    No new connections are created; the call runs on the caller's client.

    Args:
        sync_fn: Synchronous function to call (e.g., client.api.containers)
        *args: Positional arguments to pass to sync_fn
        **kwargs: Keyword arguments to pass to sync_fn

    Returns:
        Result from the synchronous function
    """
    return await asyncio.to_thread(sync_fn, *args, **kwargs)
