"""Persistence layer - collection interface and in-memory storage."""

from docrelate.persistence.adapter import DocumentCollection
from docrelate.persistence.memory import DeleteResult, MemoryCollection, UpdateResult

__all__ = ["DeleteResult", "DocumentCollection", "MemoryCollection", "UpdateResult"]
