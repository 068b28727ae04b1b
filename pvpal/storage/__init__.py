"""Persistence layer."""

from .storage import IStorage, Storage

__all__ = ["IStorage", "Storage"]
