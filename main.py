from __future__ import annotations

import argparse
import logging

import uvicorn
from dotenv import load_dotenv

from movie_catalog.core.config import AppConfig
from movie_catalog.core.logging import setup_logging

LOGGER = logging.getLogger(__name__)


def build_parser(config: AppConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the movie catalog API server.")
    parser.add_argument(
        "--host",
        default=config.server.host,
        help="Interface to bind (defaults to HOST).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=config.server.port,
        help="Port to listen on (defaults to PORT).",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart on source changes (development only).",
    )
    return parser


def main() -> None:
    load_dotenv()
    config = AppConfig.from_env()
    setup_logging(config.logging.level, config.logging.fmt)
    args = build_parser(config).parse_args()

    LOGGER.info("Starting server on %s:%s (%s)", args.host, args.port, config.environment)
    uvicorn.run(
        "web_api:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
