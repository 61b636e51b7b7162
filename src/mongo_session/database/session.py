"""
# Scoped Database Session

This module provides the **scoped session helper** used throughout the guide: it opens one
MongoDB client with the **Motor** async driver, hands it to a block of caller code, and
releases it when the block ends, whichever way it ends.

## Lifecycle

```
database_session(descriptor)
        │
        ▼
  DatabaseSession.open()  ── one client, one `ping` (no retry, no backoff)
        │
        ▼
  caller block: CRUD calls, run_pipeline(), ...
        │
        ▼
  DatabaseSession.close() ── exactly once, on return, early exit or exception
```

## Usage

```python
from mongo_session.database import database_session

async with database_session() as session:
    libros = session.get_collection("libros")
    await libros.insert_one({"titulo": "Nada", "año": 1944})
```

Exceptions raised inside the block are **never suppressed**: cleanup runs first, then
the original exception continues to the caller. A failed connection attempt also
propagates immediately, after the half-open client has been released.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, PyMongoError

from mongo_session.database.connection import ConnectionDescriptor
from mongo_session.managers.logging_manager import get_logger

db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")
health_logger = get_logger(prefix="[DB_HEALTH]")


class DatabaseSession:
    """
    A bounded-lifetime handle to one live MongoDB client.

    Attributes:
        descriptor (`ConnectionDescriptor`): Where and how to connect.
        client (`Optional[AsyncIOMotorClient]`): The Motor client. `None` until `open()`.
        database (`Optional[AsyncIOMotorDatabase]`): The selected logical database.
        released (`bool`): Set once the client has been closed. A session is never reopened.

    Example:
        ```python
        session = DatabaseSession(ConnectionDescriptor(database="biblioteca"))
        async with session:
            count = await session.get_collection("libros").count_documents({})
        assert session.released
        ```
    """

    def __init__(self, descriptor: Optional[ConnectionDescriptor] = None):
        self.descriptor = descriptor or ConnectionDescriptor.from_settings()
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.released = False

    @property
    def is_open(self) -> bool:
        return self.client is not None and not self.released

    async def open(self) -> "DatabaseSession":
        """
        Create the client and verify it with a single `ping`.

        Raises:
            `ConnectionError`: If this session was already opened or released.
            `ServerSelectionTimeoutError`, `ConnectionFailure`, `OperationFailure`: Driver
                errors from the single connection attempt, re-raised unchanged after the
                client has been released.
        """
        if self.released or self.client is not None:
            raise ConnectionError("Session already used; open a new DatabaseSession.")

        start_time = time.time()
        db_logger.info(
            "Opening MongoDB session - URI: %s, Database: %s, ServerTimeout: %dms, ConnTimeout: %dms",
            self.descriptor.build_uri(redact=True),
            self.descriptor.database,
            self.descriptor.server_selection_timeout_ms,
            self.descriptor.connect_timeout_ms,
        )

        self.client = AsyncIOMotorClient(self.descriptor.build_uri(), **self.descriptor.client_kwargs())
        self.database = self.client[self.descriptor.database]

        try:
            ping_start = time.time()
            await self.client.admin.command("ping")
            ping_duration = time.time() - ping_start
        except (PyMongoError, ConnectionError, TimeoutError) as e:
            duration = time.time() - start_time
            perf_logger.warning("Connection attempt failed after %.3fs", duration)
            db_logger.error("Failed to connect to MongoDB: %s", e)
            self.close()
            raise
        except BaseException as e:
            db_logger.warning("Session open interrupted by %s; releasing client", type(e).__name__)
            self.close()
            raise

        total_duration = time.time() - start_time
        perf_logger.info(
            "MongoDB session opened in %.3fs (ping: %.3fs)", total_duration, ping_duration
        )
        db_logger.info("Connected to MongoDB database: %s", self.descriptor.database)
        return self

    def close(self) -> None:
        """Release the client. Only the first call has any effect."""
        if self.released:
            db_logger.debug("Session already released; ignoring close()")
            return
        self.released = True

        if self.client is None:
            db_logger.debug("Closing a session that was never opened")
            return

        start_time = time.time()
        self.client.close()
        perf_logger.info("MongoDB session released in %.3fs", time.time() - start_time)
        db_logger.info("Disconnected from MongoDB")

    async def __aenter__(self) -> "DatabaseSession":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc is not None:
            db_logger.warning("Session scope exited with %s: %s", exc_type.__name__, exc)
        self.close()
        return False

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """
        Return a collection from the selected database.

        Collections are created lazily by MongoDB on first write; this call does no I/O.

        Raises:
            `ConnectionError`: If the session is not open.
        """
        if not self.is_open or self.database is None:
            db_logger.error("Attempted to get collection '%s' without an open session", collection_name)
            raise ConnectionError("Session is not open. Use 'async with database_session()' first.")

        db_logger.debug("Retrieving collection: %s", collection_name)
        return self.database[collection_name]

    async def health_check(self) -> bool:
        """Ping the server. Returns `False` instead of raising on any failure."""
        start_time = time.time()
        if not self.is_open:
            health_logger.warning("Health check failed: session is not open")
            return False

        try:
            await self.client.admin.command("ping")
        except ConnectionFailure as e:
            health_logger.error("Database health check failed: %s", e)
            return False
        except (PyMongoError, ConnectionError, TimeoutError) as e:
            health_logger.error("Unexpected error during health check: %s", e)
            return False

        perf_logger.debug("Database health check completed in %.3fs", time.time() - start_time)
        return True

    async def collection_stats(self, collection_name: str) -> Dict[str, Any]:
        """Run `collStats` for a collection and log the headline numbers."""
        start_time = time.time()
        self.get_collection(collection_name)
        stats = await self.database.command("collStats", collection_name)
        health_logger.info(
            "Collection '%s' stats - Documents: %d, Size: %d bytes, Indexes: %d (retrieved in %.3fs)",
            collection_name,
            stats.get("count", 0),
            stats.get("size", 0),
            stats.get("nindexes", 0),
            time.time() - start_time,
        )
        return stats

    async def database_stats(self) -> Dict[str, Any]:
        """Run `dbStats` for the selected database and log the headline numbers."""
        if not self.is_open:
            raise ConnectionError("Session is not open. Use 'async with database_session()' first.")

        start_time = time.time()
        db_stats = await self.database.command("dbStats")
        health_logger.info(
            "Database '%s' stats - Collections: %d, Objects: %d, DataSize: %d bytes, IndexSize: %d bytes (retrieved in %.3fs)",
            self.descriptor.database,
            db_stats.get("collections", 0),
            db_stats.get("objects", 0),
            db_stats.get("dataSize", 0),
            db_stats.get("indexSize", 0),
            time.time() - start_time,
        )
        return db_stats


@asynccontextmanager
async def database_session(descriptor: Optional[ConnectionDescriptor] = None) -> AsyncIterator[DatabaseSession]:
    """
    Open a `DatabaseSession` for the duration of an `async with` block.

    Args:
        descriptor: Connection target. Defaults to one built from `settings`.

    Yields:
        DatabaseSession: The open session. It is released when the block exits.
    """
    session = DatabaseSession(descriptor)
    async with session:
        yield session
