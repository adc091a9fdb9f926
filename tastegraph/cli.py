"""
Tastegraph Server CLI
Command-line interface for starting the Tastegraph server
"""

import argparse
import logging
import os
from pathlib import Path

import uvicorn

from tastegraph.config.categories import CATEGORY_TABLE_VERSION, load_category_configs
from tastegraph.config.settings import settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tastegraph Server - Cross-domain cultural ecosystems")
    parser.add_argument("--host", default=settings.HOST, help=f"Host to bind (default: {settings.HOST})")
    parser.add_argument("--port", type=int, default=settings.PORT, help=f"Port to bind (default: {settings.PORT})")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL.lower(),
        choices=["debug", "info", "warning", "error"],
        help="Log level",
    )
    parser.add_argument(
        "--category-overrides",
        metavar="PATH",
        default=None,
        help="YAML file overriding category display names, priorities and query tags",
    )
    return parser


def apply_category_overrides(path: str) -> None:
    """Point settings at a category override file and log the merged table."""

    resolved = str(Path(path).resolve())
    settings.CATEGORY_OVERRIDES_FILE = resolved
    # Reload workers are fresh processes that rebuild settings from the environment
    os.environ["CATEGORY_OVERRIDES_FILE"] = resolved

    table = load_category_configs(resolved)
    logger.info(
        f"Category table {CATEGORY_TABLE_VERSION} with overrides from {resolved}: "
        + ", ".join(f"{config.category_key}={config.base_priority}" for config in table)
    )


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format=settings.LOG_FORMAT)

    if args.category_overrides is not None:
        if not Path(args.category_overrides).is_file():
            parser.error(f"category override file not found: {args.category_overrides}")
        apply_category_overrides(args.category_overrides)

    logger.info(f"Starting Tastegraph Server on {args.host}:{args.port}")

    uvicorn.run(
        "tastegraph.app_factory:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level
    )


if __name__ == "__main__":
    main()
