"""Logging configuration for Locator Extractor."""

import logging
import sys

# Third-party loggers that flood DEBUG output during a browser session
NOISY_LOGGERS = ("asyncio", "httpx", "httpcore", "websockets", "playwright")

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
DEBUG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"


def setup_logging(level: str = "INFO", debug: bool = False) -> None:
    """
    Configure the root logger for the CLI and the service.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        debug: Force DEBUG with module:line in every record
    """
    log_level = logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format=DEBUG_FORMAT if debug else DEFAULT_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Uvicorn follows the app level; access lines only in debug
    for name in ("uvicorn", "uvicorn.error"):
        logging.getLogger(name).setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(
        logging.DEBUG if debug else logging.WARNING
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
