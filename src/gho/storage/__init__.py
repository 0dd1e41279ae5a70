"""Persistence for gho configuration and state documents."""

from gho.storage.documents import DocumentStore, JSONDocumentStore
from gho.storage.paths import ConfigPaths

__all__ = [
    "ConfigPaths",
    "DocumentStore",
    "JSONDocumentStore",
]
