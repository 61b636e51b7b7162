"""
Pydantic models for the guide's sample data.

MongoDB enforces no schema on `libros` or `autores`; these models only describe the
documents the guide inserts. Field names follow the stored documents, so the year is
stored as `año` and exposed in Python as `anio`.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Book(BaseModel):
    """A book document in the `libros` collection."""

    model_config = ConfigDict(populate_by_name=True)

    titulo: str = Field(..., min_length=1, description="Book title.")
    autor: str = Field(..., min_length=1, description="Author name, joins to autores.nombre.")
    anio: int = Field(..., alias="año", ge=0, description="Publication year.")
    generos: List[str] = Field(default_factory=list, description="Genres.")
    paginas: Optional[int] = Field(default=None, ge=1, description="Page count.")
    disponible: bool = Field(default=True, description="Whether the book can be lent.")

    def to_document(self) -> Dict[str, Any]:
        """Return the document to insert, using stored field names and omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Author(BaseModel):
    """An author document in the `autores` collection."""

    nombre: str = Field(..., min_length=1)
    nacionalidad: Optional[str] = None
    nacimiento: Optional[int] = Field(default=None, ge=0, description="Birth year.")

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


SAMPLE_BOOKS: List[Book] = [
    Book(titulo="Nada", autor="Carmen Laforet", año=1944, generos=["novela"], paginas=288),
    Book(titulo="Patria", autor="Fernando Aramburu", año=2016, generos=["novela", "histórica"], paginas=648),
    Book(titulo="Cien años de soledad", autor="Gabriel García Márquez", año=1967, generos=["novela", "realismo mágico"], paginas=471),
    Book(titulo="El amor en los tiempos del cólera", autor="Gabriel García Márquez", año=1985, generos=["novela", "romance"], paginas=368),
    Book(titulo="La sombra del viento", autor="Carlos Ruiz Zafón", año=2001, generos=["novela", "misterio"], paginas=565),
    Book(titulo="Ficciones", autor="Jorge Luis Borges", año=1944, generos=["cuentos"], paginas=224),
    Book(titulo="Rayuela", autor="Julio Cortázar", año=1963, generos=["novela"], paginas=600, disponible=False),
]

SAMPLE_AUTHORS: List[Author] = [
    Author(nombre="Carmen Laforet", nacionalidad="España", nacimiento=1921),
    Author(nombre="Fernando Aramburu", nacionalidad="España", nacimiento=1959),
    Author(nombre="Gabriel García Márquez", nacionalidad="Colombia", nacimiento=1927),
    Author(nombre="Carlos Ruiz Zafón", nacionalidad="España", nacimiento=1964),
    Author(nombre="Jorge Luis Borges", nacionalidad="Argentina", nacimiento=1899),
    Author(nombre="Julio Cortázar", nacionalidad="Argentina", nacimiento=1914),
]
