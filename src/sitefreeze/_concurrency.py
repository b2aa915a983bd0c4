"""Small asyncio helpers shared by enumeration and the orchestrator."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Any


async def gather_fail_fast(*aws: Awaitable[Any]) -> list[Any]:
    """Await all of *aws* concurrently; on the first error cancel the rest.

    Results keep argument order.  The first exception propagates once the
    remaining tasks have been cancelled.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        # let cancellations settle so no task result goes unretrieved
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
