#!/usr/bin/env python3
"""
Command-line entry point for the Durak room server.
"""

import argparse
import asyncio
import logging
import os
import sys

from durakroom.server.hub import DEFAULT_CONFIG
from durakroom.server.websocket import serve

logger = logging.getLogger("durakroom.server")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Durak room server.")
    parser.add_argument(
        "--host", default=DEFAULT_CONFIG["host"], help="Host to bind to"
    )
    parser.add_argument(
        "--port", type=int, default=DEFAULT_CONFIG["port"], help="Port to bind to"
    )
    parser.add_argument(
        "--max-rooms",
        type=int,
        default=DEFAULT_CONFIG["max_rooms"],
        help="Maximum number of active rooms (0 for no limit)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (defaults to $LOG_LEVEL or INFO)",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> dict:
    return {
        "host": args.host,
        "port": args.port,
        "max_rooms": args.max_rooms if args.max_rooms > 0 else None,
    }


def main(argv=None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        asyncio.run(serve(build_config(args)))
    except KeyboardInterrupt:
        logger.info("Server stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
