"""
Logging setup for the stdio server.

stdout carries the MCP protocol, so every record goes to stderr.
"""

import logging
import os
import sys
from typing import Optional

LOG_LEVEL_ENV = "MEMOCLAW_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
NOISY_LOGGERS = ("httpx", "httpcore", "web3", "urllib3")


def setup_logging(verbose: bool = False, level: Optional[str] = None) -> None:
    """
    Configure the root logger.

    Args:
        verbose: Force DEBUG for this package.
        level: Level name; defaults to ``$MEMOCLAW_LOG_LEVEL`` or ``INFO``.
    """
    if verbose:
        resolved = logging.DEBUG
    else:
        name = (level or os.getenv(LOG_LEVEL_ENV) or "INFO").upper()
        resolved = logging.getLevelName(name)
        if not isinstance(resolved, int):
            resolved = logging.INFO

    logging.basicConfig(level=resolved, stream=sys.stderr, format=LOG_FORMAT, force=True)
    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
