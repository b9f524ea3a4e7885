import argparse
import asyncio
import contextlib
import logging
from typing import Any

from zjh.models import TableConfig

from .client import ClientSession
from .console import run_console
from .host import HostSession
from .offline import OfflineTable

logging.basicConfig(level=logging.INFO)


async def _play(front: Any, runner: Any = None) -> None:
    task = asyncio.create_task(runner) if runner is not None else None
    try:
        await run_console(front)
    finally:
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task


def main() -> None:
    parser = argparse.ArgumentParser(description="Royal 235 table")
    sub = parser.add_subparsers(dest="mode", required=True)

    offline = sub.add_parser("offline", help="Play locally against computer opponents")
    offline.add_argument("--bots", type=int, default=2, choices=range(1, 5))
    offline.add_argument("--name", default="You")

    host = sub.add_parser("host", help="Host a networked table through a relay")
    host.add_argument("--relay", default="ws://127.0.0.1:3000")
    host.add_argument("--room", required=True)
    host.add_argument("--bots", type=int, default=0, choices=range(0, 5))
    host.add_argument("--name", default="Host")

    join = sub.add_parser("join", help="Join a hosted table")
    join.add_argument("--relay", default="ws://127.0.0.1:3000")
    join.add_argument("--room", required=True)

    for mode_parser in (offline, host):
        mode_parser.add_argument("--seed", type=int, default=None, help="Seed shuffles for reproducible games")
        mode_parser.add_argument("--starting-chips", type=int, default=1_000_000)
        mode_parser.add_argument("--ante", type=int, default=1_000)
        mode_parser.add_argument("--duel-delay", type=int, default=2_500, help="Comparison reveal pause in milliseconds")
    args = parser.parse_args()

    if args.mode == "join":
        session = ClientSession(args.relay, args.room)
        coro = _play(session, session.run())
    else:
        config = TableConfig(starting_chips=args.starting_chips, ante=args.ante, duel_delay_ms=args.duel_delay)
        if args.mode == "offline":
            coro = _play(OfflineTable(config, bots=args.bots, name=args.name, seed=args.seed))
        else:
            session = HostSession(args.relay, args.room, config, host_name=args.name, bots=args.bots, seed=args.seed)
            coro = _play(session, session.run())

    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        print("\nSession closed")


if __name__ == "__main__":
    main()
