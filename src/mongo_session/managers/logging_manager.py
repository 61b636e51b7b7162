"""
Logging manager for the mongo_session package.

All modules obtain loggers through `get_logger()`, optionally with a prefix that tags
every message from that logger (e.g. `[DATABASE]`, `[DB_PERFORMANCE]`).

```python
from mongo_session.managers.logging_manager import get_logger

db_logger = get_logger(prefix="[DATABASE]")
db_logger.info("Connected to %s", "biblioteca")
# 2026-01-01 12:00:00,000 - mongo_session - INFO - [DATABASE] Connected to biblioteca
```
"""

import logging
from typing import Any, MutableMapping, Optional, Tuple

from mongo_session.config import settings

ROOT_LOGGER_NAME = "mongo_session"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


class PrefixedLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends a fixed prefix to every message."""

    def __init__(self, logger: logging.Logger, prefix: str = ""):
        super().__init__(logger, {})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        if self.prefix:
            return f"{self.prefix} {msg}", kwargs
        return msg, kwargs


def _configure_root_logger() -> None:
    """Install the package stream handler once, at the level from settings."""
    global _configured
    if _configured:
        return

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(settings.LOG_LEVEL)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    _configured = True


def get_logger(name: str = ROOT_LOGGER_NAME, prefix: Optional[str] = None) -> PrefixedLoggerAdapter:
    """
    Return a logger under the package root logger.

    Args:
        name: Logger name. Names outside `mongo_session` are nested under it so that
            one handler and one level govern every logger in the package.
        prefix: Optional tag prepended to each message.

    Returns:
        PrefixedLoggerAdapter: Adapter exposing the standard logging API.
    """
    _configure_root_logger()
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return PrefixedLoggerAdapter(logging.getLogger(name), prefix or "")
