"""
Runnable walkthroughs for each section of the guide.

Each walkthrough takes an open `DatabaseSession`, works on the `libros` and `autores`
collections of the selected database, and returns a JSON-serialisable summary of what
it did. The CLI prints these summaries.

```python
async with database_session() as session:
    summary = await run_crud_demo(session)
```
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from mongo_session.database.indexes import BOOK_INDEXES, create_indexes, verify_indexes
from mongo_session.database.pipeline import Pipeline
from mongo_session.database.repository import DocumentRepository
from mongo_session.database.session import DatabaseSession
from mongo_session.managers.logging_manager import get_logger
from mongo_session.models.book_models import SAMPLE_AUTHORS, SAMPLE_BOOKS

logger = get_logger(prefix="[Guide]")

BOOKS_COLLECTION = "libros"
AUTHORS_COLLECTION = "autores"


async def seed_sample_data(session: DatabaseSession, reset: bool = True) -> Dict[str, int]:
    """Insert the sample books and authors, emptying both collections first when `reset`."""
    libros = DocumentRepository(session.get_collection(BOOKS_COLLECTION))
    autores = DocumentRepository(session.get_collection(AUTHORS_COLLECTION))

    if reset:
        await libros.delete_many({})
        await autores.delete_many({})

    books = await libros.insert_many([book.to_document() for book in SAMPLE_BOOKS])
    authors = await autores.insert_many([author.to_document() for author in SAMPLE_AUTHORS])
    logger.info("Seeded %d books and %d authors", len(books.inserted_ids), len(authors.inserted_ids))
    return {"libros": len(books.inserted_ids), "autores": len(authors.inserted_ids)}


async def run_crud_demo(session: DatabaseSession) -> Dict[str, Any]:
    """Create, read, update and delete against `libros`."""
    libros = DocumentRepository(session.get_collection(BOOKS_COLLECTION))
    summary: Dict[str, Any] = {}

    # Create
    summary["seeded"] = await seed_sample_data(session)

    # Read
    by_year = await libros.find(projection={"_id": 0, "titulo": 1, "año": 1}, sort=[("año", 1), ("titulo", 1)])
    summary["titles_by_year"] = [doc["titulo"] for doc in by_year]
    nada = await libros.find_one({"titulo": "Nada"}, {"_id": 0})
    summary["found"] = nada
    summary["novels"] = await libros.count_documents({"generos": "novela"})

    # Update
    lent = await libros.update_one({"titulo": "Nada"}, {"$set": {"disponible": False}})
    classics = await libros.update_many({"año": {"$lt": 1970}}, {"$set": {"clasico": True}})
    summary["updated"] = {"prestado": lent.modified_count, "clasicos": classics.modified_count}

    # Delete
    missing = await libros.delete_one({"titulo": "Libro inexistente"})
    removed = await libros.delete_one({"titulo": "Rayuela"})
    summary["deleted"] = {"inexistente": missing.deleted_count, "rayuela": removed.deleted_count}
    summary["remaining"] = await libros.count_documents()

    return summary


async def run_index_demo(session: DatabaseSession) -> Dict[str, Any]:
    """Create the guide's indexes and report which ones exist afterwards."""
    created = await create_indexes(session.database, BOOK_INDEXES)
    verified = await verify_indexes(session.database, BOOK_INDEXES)
    libros = session.get_collection(BOOKS_COLLECTION)
    existing = await libros.list_indexes().to_list(length=None)
    return {
        "created": created["created"],
        "failed": created["failed"],
        "verified": f"{verified['verified_indexes']}/{verified['total_indexes']}",
        "missing": [entry["index_name"] for entry in verified["missing_indexes"]],
        "libros_indexes": sorted(idx["name"] for idx in existing),
    }


def books_per_genre() -> Pipeline:
    return (
        Pipeline()
        .unwind("generos")
        .group("$generos", total={"$sum": 1})
        .sort([("total", -1), ("_id", 1)])
    )


def books_by_author_since(year: int) -> Pipeline:
    return (
        Pipeline()
        .match({"año": {"$gte": year}})
        .group("$autor", total={"$sum": 1}, titulos={"$push": "$titulo"})
        .sort([("total", -1), ("_id", 1)])
    )


def books_with_author() -> Pipeline:
    return (
        Pipeline()
        .lookup(AUTHORS_COLLECTION, "autor", "nombre", "autor_info")
        .unwind("autor_info", preserve_null_and_empty_arrays=True)
        .project({"_id": 0, "titulo": 1, "autor": 1, "nacionalidad": "$autor_info.nacionalidad"})
        .sort("titulo")
    )


def book_age(current_year: Optional[int] = None) -> Pipeline:
    current_year = current_year or datetime.now(timezone.utc).year
    return (
        Pipeline()
        .add_fields(antiguedad={"$subtract": [current_year, "$año"]})
        .project({"_id": 0, "titulo": 1, "antiguedad": 1})
        .sort([("antiguedad", -1), ("titulo", 1)])
    )


def longest_books(top: int = 3) -> Pipeline:
    return Pipeline().sort("paginas", -1).limit(top).project({"_id": 0, "titulo": 1, "paginas": 1})


async def run_aggregation_demo(session: DatabaseSession, seed: bool = True) -> Dict[str, List[Dict[str, Any]]]:
    """Run each example pipeline over the sample data and collect the results."""
    if seed:
        await seed_sample_data(session)

    libros = DocumentRepository(session.get_collection(BOOKS_COLLECTION))
    pipelines = {
        "por_genero": books_per_genre(),
        "autores_desde_1950": books_by_author_since(1950),
        "con_autor": books_with_author(),
        "antiguedad": book_age(),
        "mas_largos": longest_books(),
    }

    results: Dict[str, List[Dict[str, Any]]] = {}
    for name, pipeline in pipelines.items():
        logger.info("Running pipeline '%s': %s", name, pipeline.stage_names)
        results[name] = await libros.aggregate(pipeline).to_list()
    return results
