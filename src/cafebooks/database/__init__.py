"""Database layer for cafebooks application."""

from cafebooks.database.base import BlobStore
from cafebooks.database.factories import create_sqlite_store
from cafebooks.database.repository import StoreRepository

__all__ = ["BlobStore", "create_sqlite_store", "StoreRepository"]
