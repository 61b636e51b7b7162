"""
CRUD helpers for a single collection.

`DocumentRepository` wraps an `AsyncIOMotorCollection` with the operations the guide
walks through. Each call is timed and logged; driver results and driver errors pass
through unchanged.

```python
libros = DocumentRepository(session.get_collection("libros"))
await libros.insert_many([{"titulo": "Nada", "año": 1944}, {"titulo": "Patria", "año": 2016}])
docs = await libros.find(sort=[("año", 1)])
result = await libros.delete_one({"titulo": "No existe"})
result.deleted_count  # 0
```
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.results import DeleteResult, InsertManyResult, InsertOneResult, UpdateResult

from mongo_session.database.pipeline import Pipeline, PipelineCursor, run_pipeline
from mongo_session.database.query_logging import timed_query

SortSpec = Union[str, Sequence[Tuple[str, int]]]


class DocumentRepository:
    """Logged CRUD operations over one collection."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self._collection = collection

    @property
    def name(self) -> str:
        return self._collection.name

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def insert_one(self, document: Mapping[str, Any], **kwargs: Any) -> InsertOneResult:
        with timed_query(self.name, "insert_one") as outcome:
            result = await self._collection.insert_one(dict(document), **kwargs)
            outcome.info = f"inserted_id={result.inserted_id}"
        return result

    async def insert_many(self, documents: Sequence[Mapping[str, Any]], **kwargs: Any) -> InsertManyResult:
        with timed_query(self.name, "insert_many") as outcome:
            result = await self._collection.insert_many([dict(doc) for doc in documents], **kwargs)
            outcome.count = len(result.inserted_ids)
        return result

    async def find_one(
        self, filter: Optional[Mapping[str, Any]] = None, projection: Optional[Mapping[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        with timed_query(self.name, "find_one", filter) as outcome:
            document = await self._collection.find_one(dict(filter or {}), projection)
            outcome.count = 1 if document else 0
        return document

    async def find(
        self,
        filter: Optional[Mapping[str, Any]] = None,
        projection: Optional[Mapping[str, Any]] = None,
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        """
        Return all matching documents as a list.

        Args:
            filter: Query filter. `None` matches everything.
            projection: Fields to include/exclude.
            sort: Field name (ascending) or list of `(field, direction)` pairs.
            skip: Documents to skip.
            limit: Maximum documents to return; `0` means no limit.
        """
        options = {"sort": sort, "skip": skip, "limit": limit}
        with timed_query(self.name, "find", filter, options) as outcome:
            cursor = self._collection.find(dict(filter or {}), projection)
            if sort:
                cursor = cursor.sort([(sort, 1)] if isinstance(sort, str) else list(sort))
            if skip:
                cursor = cursor.skip(skip)
            if limit:
                cursor = cursor.limit(limit)
            documents = await cursor.to_list(length=None)
            outcome.count = len(documents)
        return documents

    async def update_one(
        self, filter: Mapping[str, Any], update: Mapping[str, Any], upsert: bool = False
    ) -> UpdateResult:
        with timed_query(self.name, "update_one", filter, {"upsert": upsert}) as outcome:
            result = await self._collection.update_one(dict(filter), dict(update), upsert=upsert)
            outcome.count = result.modified_count
            outcome.info = f"matched={result.matched_count}, upserted_id={result.upserted_id}"
        return result

    async def update_many(
        self, filter: Mapping[str, Any], update: Mapping[str, Any], upsert: bool = False
    ) -> UpdateResult:
        with timed_query(self.name, "update_many", filter, {"upsert": upsert}) as outcome:
            result = await self._collection.update_many(dict(filter), dict(update), upsert=upsert)
            outcome.count = result.modified_count
            outcome.info = f"matched={result.matched_count}"
        return result

    async def replace_one(
        self, filter: Mapping[str, Any], replacement: Mapping[str, Any], upsert: bool = False
    ) -> UpdateResult:
        with timed_query(self.name, "replace_one", filter, {"upsert": upsert}) as outcome:
            result = await self._collection.replace_one(dict(filter), dict(replacement), upsert=upsert)
            outcome.count = result.modified_count
        return result

    async def delete_one(self, filter: Mapping[str, Any]) -> DeleteResult:
        """Delete the first match. A filter that matches nothing gives `deleted_count == 0`."""
        with timed_query(self.name, "delete_one", filter) as outcome:
            result = await self._collection.delete_one(dict(filter))
            outcome.count = result.deleted_count
        return result

    async def delete_many(self, filter: Mapping[str, Any]) -> DeleteResult:
        with timed_query(self.name, "delete_many", filter) as outcome:
            result = await self._collection.delete_many(dict(filter))
            outcome.count = result.deleted_count
        return result

    async def count_documents(self, filter: Optional[Mapping[str, Any]] = None) -> int:
        with timed_query(self.name, "count_documents", filter) as outcome:
            count = await self._collection.count_documents(dict(filter or {}))
            outcome.count = count
        return count

    async def distinct(self, key: str, filter: Optional[Mapping[str, Any]] = None) -> List[Any]:
        with timed_query(self.name, "distinct", filter, {"key": key}) as outcome:
            values = await self._collection.distinct(key, dict(filter or {}))
            outcome.count = len(values)
        return values

    def aggregate(self, pipeline: Union[Pipeline, Sequence[Dict[str, Any]]], **kwargs: Any) -> PipelineCursor:
        return run_pipeline(self._collection, pipeline, **kwargs)
