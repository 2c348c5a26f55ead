"""
Test fixtures for pdanalytics.

Provides reusable table records and wire pages.
"""

from .sync_fixtures import SyncFixtures

__all__ = [
    "SyncFixtures",
]
