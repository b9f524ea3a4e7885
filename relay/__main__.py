import argparse
import asyncio
import logging
import os

from .server import RelayServer

logging.basicConfig(level=logging.INFO)


def main() -> None:
    parser = argparse.ArgumentParser(description="Royal 235 relay server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", 3000)),
        help="Listening port (defaults to $PORT, then 3000)",
    )
    args = parser.parse_args()

    asyncio.run(RelayServer().start(host=args.host, port=args.port))


if __name__ == "__main__":
    main()
