"""CLI entry point for SearchPress."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from searchpress.config.settings import Settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="searchpress",
        description="SearchPress — search-cluster bridge for content repositories",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"SearchPress {_get_version()}",
    )

    commands = parser.add_subparsers(dest="command")

    serve = commands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default=None, help="Server bind address (overrides config)")
    serve.add_argument("--port", "-p", type=int, default=None, help="Server port (overrides config)")
    serve.add_argument("--workers", "-w", type=int, default=None, help="Number of worker processes")
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload for development")

    index = commands.add_parser("index", help="Manage the site index")
    index.add_argument("--setup", action="store_true", help="Delete the index and recreate it with the mapping")

    status = commands.add_parser("status", help="Print cluster, index or search statistics")
    status.add_argument("kind", choices=["cluster", "index", "search", "plugins"], nargs="?", default="index")
    status.add_argument("--site-id", type=int, default=None, help="Site id (defaults to the configured site)")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = _load_settings(args.config)
    if args.log_level:
        settings.observability.log_level = args.log_level

    from searchpress.observability.logging import setup_logging

    setup_logging(settings.observability)

    if args.command == "index":
        return _index(settings, args)
    if args.command == "status":
        return _status(settings, args)
    return _serve(settings, args)


def _load_settings(config: str | None) -> Settings:
    if not config:
        return Settings()
    config_path = Path(config)
    if not config_path.exists():
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)
        sys.exit(1)
    return Settings.from_yaml(config_path)


def _serve(settings: Settings, args: argparse.Namespace) -> int:
    if getattr(args, "host", None):
        settings.server.host = args.host
    if getattr(args, "port", None):
        settings.server.port = args.port
    if getattr(args, "workers", None):
        settings.server.workers = args.workers
    reload = getattr(args, "reload", False)

    import uvicorn

    from searchpress.api.app import create_app

    if reload or settings.server.workers > 1:
        # Reload and multi-worker modes need an import string; the factory reads env/YAML itself.
        uvicorn.run(
            "searchpress.api.app:create_app",
            factory=True,
            host=settings.server.host,
            port=settings.server.port,
            workers=1 if reload else settings.server.workers,
            reload=reload,
            log_level=settings.observability.log_level.lower(),
        )
    else:
        uvicorn.run(
            create_app(settings),
            host=settings.server.host,
            port=settings.server.port,
            log_level=settings.observability.log_level.lower(),
        )
    return 0


def _index(settings: Settings, args: argparse.Namespace) -> int:
    from searchpress.core.operations import IndexOperations

    if not args.setup:
        print("Nothing to do. Use --setup to recreate the index mapping.", file=sys.stderr)
        return 2

    operations = IndexOperations.from_settings(settings)
    try:
        if operations.process_site_mappings():
            print(f"Mapping sent to {operations.index_name}")
            return 0
        print(f"Error: could not put the mapping on {operations.index_name}", file=sys.stderr)
        return 1
    finally:
        operations.close()


def _status(settings: Settings, args: argparse.Namespace) -> int:
    from pydantic import BaseModel

    from searchpress.core.operations import IndexOperations

    operations = IndexOperations.from_settings(settings)
    scope = "current" if args.site_id is None else args.site_id
    try:
        if args.kind == "cluster":
            result = operations.get_cluster_status()
        elif args.kind == "search":
            result = operations.get_search_status(scope)
        elif args.kind == "plugins":
            result = operations.get_plugins()
        else:
            result = operations.get_index_status(scope)
    finally:
        operations.close()

    if isinstance(result, BaseModel):
        result = result.model_dump()
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0 if not (isinstance(result, dict) and result.get("status") is False) else 1


def _get_version() -> str:
    """Get the package version."""
    from searchpress import __version__

    return __version__


if __name__ == "__main__":
    sys.exit(main())
