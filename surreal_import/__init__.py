"""Bulk import of delimited text files into SurrealDB."""

__version__ = "0.1.0"
