"""
Logging setup for the tracker API.

``setup_logging`` attaches a console handler (and an optional file
handler) to the root logger and sets its level. Handlers are only
added while the root logger has none, so repeated ``create_app`` calls
in tests do not stack them.
"""

import logging
from pathlib import Path


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", logfile: str | None = None):
    """
    Configure the root logger.

    Args:
        level (str): Logging level name, case insensitive.
        logfile (str | None): Optional path of a file to log to.
    """
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if logger.handlers:
        return

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
