"""consulwatch CLI — consulwatch watch.

Entry point for the ``consulwatch`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the consulwatch CLI."""
    parser = argparse.ArgumentParser(
        prog="consulwatch",
        description="Watch registry services and keys as one consistent snapshot.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # consulwatch watch
    watch_parser = subparsers.add_parser(
        "watch",
        help="Print a JSON snapshot every time watched dependencies change",
    )
    watch_parser.add_argument(
        "root", nargs="?", default=".", help="Directory holding consulwatch.yaml",
    )
    watch_parser.add_argument(
        "--service", dest="services", action="append", default=[],
        metavar="NAME", help="Service to watch (repeatable)",
    )
    watch_parser.add_argument(
        "--key", dest="keys", action="append", default=[],
        metavar="KEY", help="Key to watch (repeatable)",
    )
    watch_parser.add_argument(
        "--prefix", dest="prefixes", action="append", default=[],
        metavar="PREFIX", help="Key prefix to watch recursively (repeatable)",
    )
    watch_parser.add_argument("--endpoint", default=None, help="Registry HTTP address")
    watch_parser.add_argument("--datacenter", default=None, help="Datacenter to query")
    watch_parser.add_argument("--token", default=None, help="ACL token")
    watch_parser.add_argument(
        "--wait", type=float, default=None, help="Long-poll max wait in seconds",
    )
    watch_parser.add_argument(
        "--retry-delay", type=float, default=None,
        help="Seconds to wait after a server error",
    )
    watch_parser.add_argument(
        "--consistency", choices=("default", "consistent", "stale"), default=None,
        help="Read consistency mode",
    )
    watch_parser.add_argument(
        "--verbose", action="store_true", help="Print every fetch to stderr",
    )

    return parser


def _get_version() -> str:
    """Get the package version."""
    from consulwatch import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from consulwatch.app import watch

    if args.command == "watch":
        code = watch(
            root=args.root,
            services=args.services,
            keys=args.keys,
            prefixes=args.prefixes,
            verbose=args.verbose,
            endpoint=args.endpoint,
            datacenter=args.datacenter,
            acl_token=args.token,
            long_poll_max_wait=args.wait,
            retry_delay=args.retry_delay,
            consistency_mode=args.consistency,
        )
        sys.exit(code)


if __name__ == "__main__":
    main()
