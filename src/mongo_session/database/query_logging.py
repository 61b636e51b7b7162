"""
Timing and sanitised logging for individual database operations.

```python
with timed_query("libros", "delete_one", {"titulo": "Nada"}) as outcome:
    result = await collection.delete_one({"titulo": "Nada"})
    outcome.count = result.deleted_count
```
"""

import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from pymongo.errors import PyMongoError

from mongo_session.managers.logging_manager import get_logger

db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")

SENSITIVE_FIELDS = {
    "password",
    "password_hash",
    "token",
    "secret",
    "credential",
    "api_key",
    "access_token",
    "refresh_token",
}


def sanitize_query_for_logging(query: Any) -> Any:
    """Return a copy of a filter/options mapping with sensitive values redacted."""
    if isinstance(query, list):
        return [sanitize_query_for_logging(item) for item in query]
    if not isinstance(query, dict):
        return query

    sanitized: Dict[str, Any] = {}
    for key, value in query.items():
        if any(sensitive_field in str(key).lower() for sensitive_field in SENSITIVE_FIELDS):
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, (dict, list)):
            sanitized[key] = sanitize_query_for_logging(value)
        else:
            sanitized[key] = value
    return sanitized


class QueryOutcome:
    """What a timed operation reports back: a document count and/or a short note."""

    def __init__(self) -> None:
        self.count: Optional[int] = None
        self.info: Optional[str] = None
        self.duration: Optional[float] = None


@contextmanager
def timed_query(
    collection_name: str, operation: str, query: Optional[Any] = None, options: Optional[Dict] = None
) -> Iterator[QueryOutcome]:
    """
    Time the enclosed driver call and log how it went.

    Driver errors are logged with the sanitised filter and re-raised unchanged.
    """
    outcome = QueryOutcome()
    label = f"{operation} on '{collection_name}'"
    db_logger.debug(
        "%s: filter=%s options=%s",
        label,
        sanitize_query_for_logging(query or {}),
        sanitize_query_for_logging(options or {}),
    )
    start_time = time.time()
    try:
        yield outcome
    except PyMongoError as e:
        outcome.duration = time.time() - start_time
        perf_logger.error("%s failed after %.3fs", label, outcome.duration)
        db_logger.error("%s failed: %s (filter=%s)", label, e, sanitize_query_for_logging(query or {}))
        raise

    outcome.duration = time.time() - start_time
    if outcome.count is None:
        perf_logger.info("%s took %.3fs", label, outcome.duration)
    else:
        perf_logger.info("%s took %.3fs, %d documents", label, outcome.duration, outcome.count)
    if outcome.info:
        db_logger.debug("%s: %s", label, outcome.info)
