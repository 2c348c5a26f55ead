"""
Storage components for pdanalytics.

This package provides:
- An async SQLite wrapper
- The table store used by the data sync subsystem
"""

from .database import Database
from .store import SyncStore, TableSchema

__all__ = [
    'Database',
    'SyncStore',
    'TableSchema',
]
