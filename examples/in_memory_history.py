#!/usr/bin/env python3
from __future__ import annotations

import asyncio

from laakhay.history import (
    HistoryClient,
    InMemoryPageFetcher,
    TimeToken,
    TransientFetchError,
)


async def main() -> None:
    start = TimeToken.parse(1700000000)
    fetcher = InMemoryPageFetcher(
        {"storage": [(start + i * 10_000_000, {"n": i}) for i in range(250)]},
        # First call fails once and is retried
        faults={0: TransientFetchError("simulated reset")},
    )

    async with HistoryClient(fetcher) as client:
        recent = await client.history("storage", limit=250)
        print(f"history(limit=250)      -> {len(recent)} events in {recent.pages_fetched} pages")

        older = await client.history_older_than("storage", start + 50 * 10_000_000, limit=0)
        print(f"history_older_than(...) -> {len(older)} events")

        frame = await client.history_between(
            "storage", [start + 200 * 10_000_000, start + 100 * 10_000_000]
        )
        print(f"history_between(...)    -> {len(frame)} events")

    print("counts per fetch:", [call.count for call in fetcher.calls])


if __name__ == "__main__":
    asyncio.run(main())
