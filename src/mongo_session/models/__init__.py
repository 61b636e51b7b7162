"""Pydantic models describing the guide's sample documents."""

from mongo_session.models.book_models import SAMPLE_AUTHORS, SAMPLE_BOOKS, Author, Book

__all__ = ["Author", "Book", "SAMPLE_AUTHORS", "SAMPLE_BOOKS"]
