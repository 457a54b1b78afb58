"""
Console and file logging for command-line builds.
"""

import logging
import os
from datetime import datetime
from typing import Optional


class SummaryFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Starting ",
            "Building with ",
            "Loaded ",
            "Book page generated",
            "Blog index generated",
            "Total files in build output:",
            "Build completed successfully!",
            "Build saved with ID:",
            "Build completed in",
        ]
        return any(record.getMessage().startswith(msg) for msg in allowed_messages)


def setup_logging(verbose: bool = False, log_file: bool = False, logs_dir: Optional[str] = None) -> logging.Logger:
    """Set up logging configuration.

    Returns the ``Folio`` logger. Calling it again replaces the handlers it
    installed before.
    """
    logger = logging.getLogger('Folio')
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Console handler with filter
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not verbose:
        console_handler.addFilter(SummaryFilter())
    console_handler.setFormatter(logging.Formatter('%(message)s'))
    logger.addHandler(console_handler)

    if log_file:
        # File handler for all logs
        logs_dir = logs_dir or os.path.join(os.getcwd(), 'logs')
        os.makedirs(logs_dir, exist_ok=True)
        log_filename = datetime.now().strftime('folio_%Y-%m-%d_%H-%M-%S.log')
        file_handler = logging.FileHandler(os.path.join(logs_dir, log_filename), encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)

    return logger
