"""CLI entry point for indexsync."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any


def _split(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="indexsync",
        description="indexsync — Keep a search index in step with a primary datastore",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to YAML configuration file")
    parser.add_argument("--host", default=None, help="Search service host (overrides config)")
    parser.add_argument("--port", "-p", type=int, default=None, help="Search service port (overrides config)")
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument("--version", action="version", version=f"indexsync {_get_version()}")

    commands = parser.add_subparsers(dest="command", required=True)

    search = commands.add_parser("search", help="Search one, many, or all collections")
    search.add_argument("query", nargs="?", default="*", help="Query string (default: match all)")
    search.add_argument("--collections", type=str, default=None, help="Comma-separated collection names")
    search.add_argument("--prefix", type=str, default=None, help="Index namespace prefix")
    search.add_argument("--fields", type=str, default=None, help="Comma-separated fields to search")
    search.add_argument("--page", type=int, default=1, help="1-based page number")
    search.add_argument("--page-size", type=int, default=25, help="Results per page")

    unindex = commands.add_parser("unindex", help="Delete one document from the index")
    unindex.add_argument("id", help="Document id")
    unindex.add_argument("--index", required=True, help="Index name")
    unindex.add_argument("--type", required=True, help="Document type")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    from indexsync.adapters.base.exceptions import IndexSyncError
    from indexsync.config.settings import Settings
    from indexsync.observability.logging import setup_logging

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings()

    # Apply CLI overrides
    if args.host:
        settings.connection.host = args.host
    if args.port:
        settings.connection.port = args.port
    if args.log_level:
        settings.observability.log_level = args.log_level

    setup_logging(settings.observability)

    try:
        result = asyncio.run(_run(args, settings))
    except IndexSyncError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(result, indent=2, ensure_ascii=False))


async def _run(args: argparse.Namespace, settings: Any) -> Any:
    from indexsync.core.engine import IndexSyncEngine
    from indexsync.models.query import QueryDescriptor

    async with IndexSyncEngine(settings) as engine:
        if args.command == "search":
            query = QueryDescriptor(
                query=args.query,
                fields=_split(args.fields) or [],
                page=args.page,
                page_size=args.page_size,
                collections=_split(args.collections),
            )
            options = {"prefix": args.prefix} if args.prefix else None
            result = await engine.search(query, options)
            return result.model_dump(mode="json")

        options = engine.registry.resolve({"index": args.index, "type": args.type})
        return await engine.client.remove_document(args.id, options)


def _get_version() -> str:
    """Get the package version."""
    try:
        from indexsync import __version__

        return __version__
    except ImportError:
        return "unknown"


if __name__ == "__main__":
    main()
