from __future__ import annotations

import asyncio


async def simulate_latency(ms: int) -> None:
    """Stand-in for a network round trip to the backend."""
    if ms > 0:
        await asyncio.sleep(ms / 1000)
