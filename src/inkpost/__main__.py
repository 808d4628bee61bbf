#!/usr/bin/env python3
"""
Run the Inkpost REST or GraphQL server.

    python -m inkpost --api rest --port 3000
    python -m inkpost --api graphql --memory
"""

import argparse
import sys

import uvicorn

from .config import Settings
from .errors import ConfigurationError
from .logging import LogConfig, get_logger, setup_logging, shutdown_logging
from .storage import create_store

logger = get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the Inkpost blog API")
    parser.add_argument(
        "--api",
        choices=("rest", "graphql"),
        default="rest",
        help="Which API surface to serve (default: rest)",
    )
    parser.add_argument("--host", help="Bind address (default: INKPOST_HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Listening port (default: PORT or 3000)")
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Use a process-local in-memory store instead of MongoDB",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    if args.debug:
        overrides["debug"] = True

    try:
        settings = Settings.from_env(**overrides)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(LogConfig.from_settings(settings))
    logger.info(
        f"Starting {args.api} API",
        extra={
            "settings": settings.to_dict(),
            "env_overrides": sorted(settings.environment_overrides),
        },
    )

    try:
        store = create_store(settings, in_memory=args.memory)
        if args.api == "graphql":
            from .api.graphql import create_graphql_server

            create_graphql_server(settings, store=store).run()
        else:
            from .api.rest import create_app

            uvicorn.run(
                create_app(settings, store=store),
                host=settings.host,
                port=settings.port,
                log_level="debug" if settings.debug else "info",
            )
    finally:
        logger.info("Server stopped")
        shutdown_logging()
    return 0


if __name__ == "__main__":
    sys.exit(main())
