"""Logging setup and an in-memory buffer of recent log entries."""

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class RecentLogBuffer(logging.Handler):
    """Keeps the last `capacity` log records as plain dicts, oldest first."""

    def __init__(self, capacity: int = 100, level: int = logging.NOTSET):
        super().__init__(level)
        self._entries = deque(maxlen=capacity)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except Exception:
            self.handleError(record)
            return
        self._entries.append(
            {
                "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
                "level": record.levelname,
                "category": record.name,
                "message": message,
            }
        )

    def entries(self, min_level: Optional[int] = None) -> List[Dict[str, Any]]:
        """Buffered entries, optionally only those at or above a level."""
        if min_level is None:
            return list(self._entries)
        return [e for e in self._entries if logging.getLevelName(e["level"]) >= min_level]

    def clear(self) -> None:
        self._entries.clear()


def configure_logging(
    level: str = "INFO", buffer: Optional[RecentLogBuffer] = None
) -> Optional[RecentLogBuffer]:
    """Configure root logging and attach the buffer, if one is given."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
    if buffer is not None:
        logging.getLogger().addHandler(buffer)
    return buffer
