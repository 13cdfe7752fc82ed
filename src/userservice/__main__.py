"""
=============================================================================
CLI ENTRY POINT
=============================================================================

    python -m userservice                      # 127.0.0.1:8080
    python -m userservice --port 3000
    python -m userservice --host 0.0.0.0       # containers
    python -m userservice --workers 8
    python -m userservice --log-format json

Flags override ``USERSVC_*`` environment variables, which override the
defaults in ServerConfig. The process runs until SIGINT or SIGTERM and
exits with status 1 if the server cannot start.

=============================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .app import create_app
from .config import ServerConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="userservice",
        description="In-memory user CRUD service over HTTP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  USERSVC_HOST, USERSVC_PORT, USERSVC_WORKERS, USERSVC_TIMEOUT,
  USERSVC_LOG_LEVEL, USERSVC_LOG_FORMAT
        """
    )

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080)"
    )

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Maximum worker threads (default: 16)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"userservice {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment config with any CLI flags laid over it."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.workers is not None:
        config.max_workers = args.workers
        config.min_workers = min(config.min_workers, args.workers)
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format

    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app = create_app(config_from_args(args))
        app.run()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
