"""
# Database Package

Persistence helpers for the guide, built on **Motor** (async MongoDB driver).

- **`connection`**: `ConnectionDescriptor`, the connection target.
- **`session`**: `DatabaseSession` and the `database_session()` scope helper.
- **`pipeline`**: `Pipeline` builder and the single-pass `PipelineCursor`.
- **`repository`**: `DocumentRepository`, logged CRUD over one collection.
- **`indexes`**: index specs plus create/verify/drop helpers.

```python
from mongo_session.database import Pipeline, database_session, run_pipeline

async with database_session() as session:
    cursor = run_pipeline(session.get_collection("libros"), Pipeline().sort("año"))
    titles = [doc["titulo"] async for doc in cursor]
```
"""

from mongo_session.database.connection import ConnectionDescriptor
from mongo_session.database.pipeline import Pipeline, PipelineCursor, run_pipeline
from mongo_session.database.repository import DocumentRepository
from mongo_session.database.session import DatabaseSession, database_session

__all__ = [
    "ConnectionDescriptor",
    "DatabaseSession",
    "DocumentRepository",
    "Pipeline",
    "PipelineCursor",
    "database_session",
    "run_pipeline",
]
