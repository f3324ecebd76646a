"""Snippet store implementations."""

from src.providers.store.sqlite_snippet_store import SQLiteSnippetStore

__all__ = ["SQLiteSnippetStore"]
