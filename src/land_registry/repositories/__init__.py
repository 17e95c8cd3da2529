"""Repository layer for the land registry.

Provides the parcel repository protocol and the helpers route handlers use
to call either the sync (in-memory) or async (Postgres) implementation.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, TypeVar

T = TypeVar("T")


async def resolve(value: T | Awaitable[T]) -> T:
    """Await a value if it is a coroutine, otherwise return it directly.

    Used for properties such as ``parcel_count``:
        count = await resolve(registry.parcel_count)

    The in-memory registry returns plain values; Postgres repos return coroutines.
    """
    if inspect.isawaitable(value):
        return await value  # type: ignore[return-value]
    return value  # type: ignore[return-value]


async def call(method: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Invoke a repository or ledger method from async code.

    Coroutine methods are awaited on the event loop. Plain methods take a
    ``threading.Lock`` and write the ledger file, so they run in a worker
    thread.
    """
    if inspect.iscoroutinefunction(method):
        return await method(*args, **kwargs)
    return await asyncio.to_thread(method, *args, **kwargs)
