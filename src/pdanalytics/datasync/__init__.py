"""
Data sync between pdanalytics instances.

This package provides:
- Syncer adapters binding tables to the wire protocol
- The registry of tables and upstream sources
- The per-table sync session with retry
- The coordinator running periodic sweeps
- The HTTP retrieval API served to peers
"""

from .types import Page, SourceDescriptor, SyncOutcome, SyncReport, SweepReport
from .syncer import Syncer, TableSyncer, IntegerCursor, TimestampCursor, Timestamp
from .client import SyncClient, build_sync_url
from .registry import SyncRegistry
from .session import SyncSession
from .coordinator import SyncCoordinator
from .api import SyncAPI, setup_sync_routes

__all__ = [
    # Types
    'Page',
    'SourceDescriptor',
    'SyncOutcome',
    'SyncReport',
    'SweepReport',

    # Syncers
    'Syncer',
    'TableSyncer',
    'IntegerCursor',
    'TimestampCursor',
    'Timestamp',

    # Protocol
    'SyncClient',
    'build_sync_url',
    'SyncRegistry',
    'SyncSession',
    'SyncCoordinator',

    # HTTP
    'SyncAPI',
    'setup_sync_routes',
]
