"""Turn a secondary index lookup into fully fetched values."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from riakhttp.types import Value

logger = logging.getLogger(__name__)

FetchFn = Callable[[str], Awaitable["Value | None"]]


async def fetch_all(keys: list[str], fetch: FetchFn, *, limit: int = 0) -> list[Value]:
    """Fetch every key concurrently and return the values that still exist.

    Keys deleted between the index lookup and the fetch are skipped; the
    remaining values keep the order of ``keys``. ``limit`` caps the number of
    in-flight fetches (0 means no cap).
    """
    if not keys:
        return []

    semaphore = asyncio.Semaphore(limit) if limit > 0 else None

    async def _fetch(key: str) -> Value | None:
        if semaphore is None:
            return await fetch(key)
        async with semaphore:
            return await fetch(key)

    results = await asyncio.gather(*(_fetch(key) for key in keys))
    values: list[Value] = []
    for key, value in zip(keys, results):
        if value is None:
            logger.warning("Key '%s' returned by index lookup no longer exists", key)
            continue
        values.append(value)
    return values
