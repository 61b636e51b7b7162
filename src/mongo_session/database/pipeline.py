"""
# Aggregation Pipelines

Build an ordered list of aggregation stages and submit it to MongoDB as one request.

## Building

```python
from mongo_session.database.pipeline import Pipeline

pipeline = (
    Pipeline()
    .match({"año": {"$gte": 1900}})
    .group("$autor", total={"$sum": 1})
    .sort({"total": -1})
    .limit(5)
)
pipeline.to_list()
# [{"$match": {...}}, {"$group": {"_id": "$autor", "total": {"$sum": 1}}}, {"$sort": {...}}, {"$limit": 5}]
```

Stage order is exactly the order of the builder calls; the output of stage *i* is the
only input of stage *i+1*. Stage contents are not checked here. A malformed stage is
rejected by the server and the error surfaces while iterating the results.

## Running

```python
cursor = run_pipeline(session.get_collection("libros"), pipeline)
async for doc in cursor:
    print(doc)

# The cursor is single-pass: a second loop yields nothing.
# Re-run `run_pipeline()` to get the results again.
```
"""

import copy
import time
from typing import Any, AsyncIterator, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorCommandCursor
from pymongo.errors import PyMongoError

from mongo_session.database.query_logging import sanitize_query_for_logging
from mongo_session.managers.logging_manager import get_logger

logger = get_logger(prefix="[Pipeline]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")

Stage = Dict[str, Any]
SortSpec = Union[Mapping[str, int], Sequence[Tuple[str, int]], str]


def _stage_name(name: str) -> str:
    return name if name.startswith("$") else f"${name}"


class Pipeline:
    """
    Ordered sequence of aggregation stages.

    Every builder method appends one stage and returns the pipeline, so calls chain.
    Parameters are deep-copied into the stage, so mutating a dict after passing it in
    does not change the pipeline.
    """

    def __init__(self, stages: Optional[Iterable[Stage]] = None):
        self._stages: List[Stage] = []
        for stage in stages or []:
            if len(stage) != 1:
                raise ValueError(f"A stage must have exactly one operator, got {list(stage)}")
            name, params = next(iter(stage.items()))
            self.stage(name, params)

    @classmethod
    def from_stages(cls, stages: Iterable[Stage]) -> "Pipeline":
        return cls(stages)

    def stage(self, name: str, params: Any) -> "Pipeline":
        """Append an arbitrary stage, e.g. `stage("bucket", {...})`."""
        self._stages.append({_stage_name(name): copy.deepcopy(params)})
        return self

    def match(self, query: Mapping[str, Any]) -> "Pipeline":
        return self.stage("$match", dict(query))

    def group(self, key: Any, **accumulators: Any) -> "Pipeline":
        """
        Group by `key` (a field path such as `"$autor"`, a dict for compound keys, or
        `None` for a single group). Keyword arguments name the output accumulators.
        """
        spec: Dict[str, Any] = {"_id": key}
        spec.update(accumulators)
        return self.stage("$group", spec)

    def project(self, projection: Mapping[str, Any]) -> "Pipeline":
        return self.stage("$project", dict(projection))

    def sort(self, spec: SortSpec, direction: int = 1) -> "Pipeline":
        """
        Sort by a mapping, a list of `(field, direction)` pairs, or a single field name
        with `direction`.
        """
        if isinstance(spec, str):
            order = {spec: direction}
        elif isinstance(spec, Mapping):
            order = dict(spec)
        else:
            order = {field: field_direction for field, field_direction in spec}
        return self.stage("$sort", order)

    def limit(self, count: int) -> "Pipeline":
        return self.stage("$limit", count)

    def skip(self, count: int) -> "Pipeline":
        return self.stage("$skip", count)

    def lookup(self, from_collection: str, local_field: str, foreign_field: str, as_field: str) -> "Pipeline":
        """Left outer join against another collection of the same database."""
        return self.stage(
            "$lookup",
            {
                "from": from_collection,
                "localField": local_field,
                "foreignField": foreign_field,
                "as": as_field,
            },
        )

    def add_fields(self, **fields: Any) -> "Pipeline":
        """Compute new fields from expressions, e.g. `add_fields(edad={"$subtract": [2024, "$año"]})`."""
        return self.stage("$addFields", fields)

    def unwind(self, path: str, preserve_null_and_empty_arrays: bool = False) -> "Pipeline":
        path = path if path.startswith("$") else f"${path}"
        if preserve_null_and_empty_arrays:
            return self.stage("$unwind", {"path": path, "preserveNullAndEmptyArrays": True})
        return self.stage("$unwind", path)

    def count(self, field: str = "count") -> "Pipeline":
        return self.stage("$count", field)

    def to_list(self) -> List[Stage]:
        """Return a deep copy of the stages, ready to pass to the driver."""
        return copy.deepcopy(self._stages)

    @property
    def stage_names(self) -> List[str]:
        return [next(iter(stage)) for stage in self._stages]

    def __len__(self) -> int:
        return len(self._stages)

    def __iter__(self) -> Iterator[Stage]:
        return iter(self.to_list())

    def __repr__(self) -> str:
        return f"Pipeline({self.stage_names})"


class PipelineCursor:
    """
    Single-pass, forward-only view over the results of one pipeline submission.

    Once the underlying cursor is exhausted further iteration yields nothing; it is
    never restarted. Server errors for a bad stage are raised from iteration.

    Attributes:
        collection_name (`str`): Collection the pipeline ran against.
        consumed (`int`): Documents yielded so far.
        exhausted (`bool`): Whether the end of the results has been reached.
    """

    def __init__(self, cursor: AsyncIOMotorCommandCursor, collection_name: str, stage_count: int):
        self._cursor = cursor
        self.collection_name = collection_name
        self.stage_count = stage_count
        self.consumed = 0
        self.exhausted = False
        self._start_time = time.time()

    def __aiter__(self) -> AsyncIterator[Dict[str, Any]]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Dict[str, Any]]:
        if self.exhausted:
            logger.debug("Pipeline cursor on '%s' already exhausted", self.collection_name)
            return

        try:
            async for document in self._cursor:
                self.consumed += 1
                yield document
        except PyMongoError as e:
            perf_logger.error(
                "aggregate on '%s' failed after %.3fs", self.collection_name, time.time() - self._start_time
            )
            logger.error("Pipeline on '%s' rejected by server: %s", self.collection_name, e)
            raise

        self.exhausted = True
        perf_logger.info(
            "aggregate on '%s' completed successfully in %.3fs - %d records",
            self.collection_name,
            time.time() - self._start_time,
            self.consumed,
        )

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        """Drain up to `length` remaining documents (all of them when `None`)."""
        documents: List[Dict[str, Any]] = []
        if length is not None and length <= 0:
            return documents
        async for document in self:
            documents.append(document)
            if length is not None and len(documents) >= length:
                break
        return documents


def run_pipeline(
    collection: AsyncIOMotorCollection,
    pipeline: Union[Pipeline, Sequence[Stage]],
    **kwargs: Any,
) -> PipelineCursor:
    """
    Submit `pipeline` to `collection` as one aggregate request.

    Args:
        collection: Target collection.
        pipeline: A `Pipeline` or a plain list of stage dicts. An empty pipeline returns
            every document of the collection in natural order.
        **kwargs: Passed to `aggregate` (e.g. `allowDiskUse=True`, `session=...`).

    Returns:
        PipelineCursor: Lazy, single-pass result sequence.
    """
    stages = pipeline.to_list() if isinstance(pipeline, Pipeline) else [dict(stage) for stage in pipeline]
    logger.debug(
        "Submitting %d-stage pipeline to '%s': %s",
        len(stages),
        collection.name,
        sanitize_query_for_logging(stages),
    )
    cursor = collection.aggregate(stages, **kwargs)
    return PipelineCursor(cursor, collection.name, len(stages))
