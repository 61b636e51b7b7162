"""
Index definitions and helpers for the guide's collections.

Index specs are plain dicts, one per index:

```python
{
    "collection": "libros",
    "index": [("autor", 1), ("año", -1)],
    "options": {"name": "autor_año_idx"},
}
```

Every entry must carry an explicit `options["name"]`; verification and removal look
indexes up by that name.

```python
async with database_session() as session:
    report = await create_indexes(session.database)
    report = await verify_indexes(session.database)
    if report["missing_indexes"]:
        ...
```
"""

from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, TEXT
from pymongo.errors import PyMongoError

from mongo_session.managers.logging_manager import get_logger

logger = get_logger(prefix="[Indexes]")

BOOK_INDEXES: List[Dict[str, Any]] = [
    {
        "collection": "libros",
        "index": [("titulo", ASCENDING)],
        "options": {"name": "titulo_unique_idx", "unique": True},
    },
    {
        "collection": "libros",
        "index": [("año", DESCENDING)],
        "options": {"name": "año_idx"},
    },
    {
        "collection": "libros",
        "index": [("autor", ASCENDING), ("año", DESCENDING)],
        "options": {"name": "autor_año_idx"},
    },
    {
        "collection": "libros",
        "index": [("generos", ASCENDING)],
        "options": {"name": "generos_idx"},
    },
    {
        "collection": "libros",
        "index": [("titulo", TEXT)],
        "options": {"name": "titulo_text_idx", "default_language": "spanish"},
    },
    {
        "collection": "autores",
        "index": [("nombre", ASCENDING)],
        "options": {"name": "nombre_unique_idx", "unique": True},
    },
]


def _index_name(index_spec: Dict[str, Any]) -> str:
    return index_spec.get("options", {}).get("name", "unnamed")


async def create_indexes(
    database: AsyncIOMotorDatabase, specs: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    """
    Create every index in `specs` (defaults to `BOOK_INDEXES`).

    `create_index` is a no-op for an index that already exists with the same keys and options. A failure
    on one index (e.g. duplicate values under a unique index) is logged and reported; the
    remaining indexes are still attempted.

    Returns:
        `Dict[str, Any]`: `{"created": [names], "failed": [{"collection", "index_name", "error"}]}`
    """
    specs = BOOK_INDEXES if specs is None else specs
    report: Dict[str, Any] = {"created": [], "failed": []}
    logger.info("Creating %d indexes", len(specs))

    for index_spec in specs:
        collection_name = index_spec["collection"]
        index_name = _index_name(index_spec)
        try:
            await database[collection_name].create_index(index_spec["index"], **index_spec.get("options", {}))
            report["created"].append(index_name)
            logger.debug("Created index %s on collection %s", index_name, collection_name)
        except PyMongoError as e:
            logger.warning("Failed to create index %s on collection %s: %s", index_name, collection_name, e)
            report["failed"].append({"collection": collection_name, "index_name": index_name, "error": str(e)})

    logger.info(
        "Index creation completed: %d created, %d failed", len(report["created"]), len(report["failed"])
    )
    return report


async def verify_indexes(
    database: AsyncIOMotorDatabase, specs: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    """
    Compare the indexes present in the database against `specs`.

    Returns:
        `Dict[str, Any]`: A report with `total_indexes`, `verified_indexes`,
        `missing_indexes` (list of dicts) and `collections_checked`.
    """
    specs = BOOK_INDEXES if specs is None else specs
    logger.info("Verifying indexes...")

    verification_results: Dict[str, Any] = {
        "total_indexes": len(specs),
        "verified_indexes": 0,
        "missing_indexes": [],
        "collections_checked": [],
    }
    existing_by_collection: Dict[str, List[str]] = {}

    for index_spec in specs:
        collection_name = index_spec["collection"]
        index_name = _index_name(index_spec)

        try:
            if collection_name not in existing_by_collection:
                indexes = await database[collection_name].list_indexes().to_list(length=None)
                existing_by_collection[collection_name] = [idx.get("name") for idx in indexes]
                verification_results["collections_checked"].append(collection_name)
        except PyMongoError as e:
            logger.warning("Failed to list indexes on collection %s: %s", collection_name, e)
            verification_results["missing_indexes"].append(
                {"collection": collection_name, "index_name": index_name, "error": str(e)}
            )
            continue

        if index_name in existing_by_collection[collection_name]:
            verification_results["verified_indexes"] += 1
            logger.debug("Verified index %s on collection %s", index_name, collection_name)
        else:
            verification_results["missing_indexes"].append(
                {"collection": collection_name, "index_name": index_name, "index_spec": index_spec["index"]}
            )
            logger.warning("Missing index %s on collection %s", index_name, collection_name)

    logger.info(
        "Index verification completed: %d/%d indexes verified",
        verification_results["verified_indexes"],
        verification_results["total_indexes"],
    )
    return verification_results


async def drop_indexes(
    database: AsyncIOMotorDatabase, specs: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, int]:
    """Drop every index in `specs` by name. Returns `{"dropped": n, "failed": n}`."""
    specs = BOOK_INDEXES if specs is None else specs
    dropped_count = 0
    failed_count = 0

    for index_spec in specs:
        collection_name = index_spec["collection"]
        index_name = _index_name(index_spec)
        try:
            await database[collection_name].drop_index(index_name)
            dropped_count += 1
            logger.debug("Dropped index %s from collection %s", index_name, collection_name)
        except PyMongoError as e:
            failed_count += 1
            logger.warning("Failed to drop index %s from collection %s: %s", index_name, collection_name, e)

    logger.info("Index removal completed: %d indexes dropped, %d failed", dropped_count, failed_count)
    return {"dropped": dropped_count, "failed": failed_count}
