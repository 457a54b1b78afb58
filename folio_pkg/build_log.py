"""
Per-run build transcript.

A BuildLogger belongs to exactly one pipeline run. It keeps the ordered list of
BuildLogLine records that ends up on the persisted build record, forwards each
line to the standard ``Folio`` logger, and notifies the optional callbacks.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .models import BuildLogLine

LEVELS = {
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
}

LogCallback = Callable[[BuildLogLine], None]


class BuildLogger:
    def __init__(self, on_log: Optional[LogCallback] = None, on_error: Optional[LogCallback] = None,
                 logger: Optional[logging.Logger] = None):
        self.on_log = on_log
        self.on_error = on_error
        self.logger = logger or logging.getLogger('Folio')
        self._lines: List[BuildLogLine] = []

    @property
    def lines(self) -> List[BuildLogLine]:
        """A copy of the transcript so far."""
        return list(self._lines)

    def log(self, message: str, level: str = 'info') -> BuildLogLine:
        if level not in LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        line = BuildLogLine(timestamp=datetime.now(timezone.utc), message=message, level=level)
        self._lines.append(line)
        self.logger.log(LEVELS[level], message)

        callback = self.on_error if level == 'error' else self.on_log
        if callback:
            callback(line)
        return line

    def info(self, message: str) -> BuildLogLine:
        return self.log(message, 'info')

    def warning(self, message: str) -> BuildLogLine:
        return self.log(message, 'warning')

    def error(self, message: str) -> BuildLogLine:
        return self.log(message, 'error')

    def messages(self, level: Optional[str] = None) -> List[str]:
        return [line.message for line in self._lines if level is None or line.level == level]

    def __len__(self):
        return len(self._lines)
