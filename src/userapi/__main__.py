"""
Command-line entry point.

    python -m userapi                       # 0.0.0.0:3000
    python -m userapi --port 8080
    python -m userapi --workers 8 --log-level DEBUG
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .app import create_app
from .config import LOG_LEVELS, ServerConfig


def build_parser() -> argparse.ArgumentParser:
    defaults = ServerConfig()
    parser = argparse.ArgumentParser(
        prog="userapi",
        description="In-memory users API over HTTP/1.1",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m userapi                     # Run with defaults
  python -m userapi --port 8080         # Custom port
  python -m userapi --host 127.0.0.1    # Localhost only
  python -m userapi --workers 8         # 8 worker threads
        """,
    )
    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})",
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.min_workers,
        help=f"Number of worker threads (default: {defaults.min_workers}, max will be 2x this)",
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        default=defaults.log_level,
        help=f"Logging level (default: {defaults.log_level})",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"userapi {__version__}",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    return ServerConfig(
        host=args.host,
        port=args.port,
        min_workers=args.workers,
        max_workers=args.workers * 2,
        log_level=args.log_level,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = create_app(config)
    except ValueError as e:
        print(f"userapi: invalid configuration: {e}", file=sys.stderr)
        return 2

    try:
        server.run()
    except OSError as e:
        print(f"userapi: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
