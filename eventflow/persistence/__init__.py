"""Persistence stores for suspended workflow runs."""

from eventflow.persistence.base import PersistenceStore
from eventflow.persistence.file import FilePersistence
from eventflow.persistence.memory import InMemoryPersistence
from eventflow.persistence.sqlite import SqlitePersistence

__all__ = [
    "FilePersistence",
    "InMemoryPersistence",
    "PersistenceStore",
    "SqlitePersistence",
]
