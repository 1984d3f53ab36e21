#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio

from laakhay.history import HistoryClient, HistoryFetchError


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Fetch channel history via the storage REST API")
    p.add_argument("subscribe_key")
    p.add_argument("channel", nargs="?", default="storage")
    p.add_argument("limit", nargs="?", type=int, default=250, help="0 fetches everything")
    p.add_argument("--reverse", action="store_true", help="Newest first")
    return p.parse_args()


async def main() -> None:
    args = parse_args()

    async with HistoryClient.from_subscribe_key(args.subscribe_key) as client:
        try:
            result = await client.history(
                args.channel, limit=args.limit, reverse=args.reverse, include_time_token=True
            )
        except HistoryFetchError as e:
            print(f"History failed ({e.category.value}, {e.attempts} attempts): {e}")
            return

    print("=" * 65)
    print(f"Channel    : {result.channel}")
    print(f"Events     : {len(result)}")
    print(f"Pages      : {result.pages_fetched}")
    print(f"Range      : {result.start} .. {result.end}")
    print("=" * 65)
    for event in result.events:
        print(f"{str(event.time_token):>17} | {event.payload!r}")


if __name__ == "__main__":
    asyncio.run(main())
