"""Command line entry point for the reddit-query client."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Sequence

from .core import DEFAULT_TIMEOUT, QueryError, QueryOptions, path_query


def _env_default(name: str) -> str:
    return os.environ.get(name, "")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Query Reddit's public JSON API and print the parsed response. "
            "The path is appended verbatim to https://www.reddit.com."
        )
    )
    parser.add_argument(
        "path",
        help="Path and query fragment, e.g. /r/python/top/.json?count=20",
    )
    parser.add_argument(
        "--key",
        default=_env_default("REDDIT_QUERY_KEY"),
        help="API key to carry in the configuration (default: $REDDIT_QUERY_KEY).",
    )
    parser.add_argument(
        "--headers",
        default=_env_default("REDDIT_QUERY_HEADERS"),
        help=(
            "Comma-separated 'Name: Value' headers, e.g. 'User-Agent: me/1.0,Accept: application/json' "
            "(default: $REDDIT_QUERY_HEADERS)."
        ),
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Seconds to wait for the server before giving up (default: {DEFAULT_TIMEOUT:g}).",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Disable TLS certificate verification (only if you trust the network).",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="Indentation for the printed JSON; 0 prints it on one line (default: 2).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Logging verbosity (default: WARNING).",
    )
    return parser.parse_args(argv)


def options_from_namespace(args: argparse.Namespace) -> QueryOptions:
    return QueryOptions(key=args.key or "", headers=args.headers or "")


def get_args(argv: Sequence[str] | None = None) -> QueryOptions:
    """Build a :class:`QueryOptions` from command-line style arguments."""
    return options_from_namespace(parse_args(argv))


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)

    log_level = getattr(logging, args.log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        force=True,
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    if args.timeout <= 0:
        raise SystemExit(f"--timeout must be positive, got {args.timeout}")

    options = options_from_namespace(args)
    try:
        result = path_query(
            args.path,
            options,
            timeout=args.timeout,
            verify=not args.insecure,
        )
    except QueryError as exc:
        raise SystemExit(f"{exc.stage} failed: {exc}") from exc

    indent = args.indent if args.indent > 0 else None
    json.dump(result, sys.stdout, indent=indent, ensure_ascii=False)
    sys.stdout.write("\n")


if __name__ == "__main__":
    main()
