"""Хранилище итоговых записей товаров."""

from .record_store import PersistenceError, RecordStore

__all__ = ["PersistenceError", "RecordStore"]
