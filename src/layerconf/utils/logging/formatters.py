"""
Log formatters.
"""

import json
import logging
from datetime import datetime, timezone

FORMAT_STYLES = {
    'minimal': '%(levelname)s %(message)s',
    'standard': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    'detailed': '%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(filename)s:%(lineno)d - %(message)s',
}


class CustomFormatter(logging.Formatter):
    """Formatter with named format styles."""

    def __init__(self, format_style: str = "standard"):
        super().__init__(FORMAT_STYLES.get(format_style, FORMAT_STYLES['standard']))
        self.format_style = format_style


class JSONFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'thread': record.threadName,
        }
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)
