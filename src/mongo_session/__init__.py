"""Scoped MongoDB sessions, CRUD helpers and aggregation pipelines for the MongoDB-from-Python guide."""

__version__ = "0.1.0"
