"""
Entry point: ``memoclaw-mcp`` / ``python -m memoclaw_mcp``.
"""

import argparse
import asyncio
import logging
import sys

from .config import load_config
from .engine.exceptions import ConfigurationError, SigningError
from .logs import setup_logging
from .servers import serve

logger = logging.getLogger("memoclaw_mcp")


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="memoclaw-mcp", description="MemoClaw MCP server (stdio)")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose)
    try:
        config = load_config()
    except ConfigurationError as e:
        logger.error("%s", e)
        sys.exit(1)

    try:
        asyncio.run(serve(config))
    except SigningError as e:
        logger.error("%s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("interrupted, shutting down")


if __name__ == "__main__":
    main()
