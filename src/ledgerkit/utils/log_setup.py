"""Logging configuration for the command line entry point."""

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(debug: bool = False, log_level: str = "warning") -> Optional[str]:
    """Configure logging for the application.

    Logs go to stderr, and additionally to the file named by the
    ``LEDGERKIT_LOG_FILE`` environment variable when it is set.

    Returns:
        Path of the log file, if one is in use
    """
    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, log_level.upper(), logging.WARNING)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    log_file = os.getenv("LEDGERKIT_LOG_FILE")
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    return log_file
