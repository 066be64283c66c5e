import logging
import threading
from collections import deque
from typing import Deque, Dict, List, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
REDACTED_KEYS = {"password", "password_hash", "id_session", "session_id"}


class RingBufferHandler(logging.Handler):
    def __init__(self, max_entries: int = 200):
        super().__init__()
        self.max_entries = max_entries
        self._events: Deque[Dict] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        event = {
            "event": record.getMessage(),
            "logger": record.name,
            "level": record.levelname,
            "ts": record.created,
            "details": redact(getattr(record, "details", {})),
        }
        with self._lock:
            self._events.append(event)

    def get_events(self) -> List[Dict]:
        with self._lock:
            return list(self._events)


def configure_logging(level: str = "INFO", ring_size: int = 200) -> RingBufferHandler:
    root = logging.getLogger()
    for handler in root.handlers:
        if isinstance(handler, RingBufferHandler):
            return handler
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    root.setLevel(level.upper())
    handler = RingBufferHandler(max_entries=ring_size)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    return handler


def redact(details: Optional[dict]) -> dict:
    if not details:
        return {}
    cleaned = {}
    for key, value in details.items():
        if key in REDACTED_KEYS:
            cleaned[key] = "***"
        else:
            cleaned[key] = value
    return cleaned
