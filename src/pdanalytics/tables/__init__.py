"""
Dashboard tables replicated between instances.

Registration order here is the order a sweep visits the tables.
"""

from typing import List, Type

from .mempool import Mempool, MempoolSyncer, MEMPOOL_SCHEMA
from .vsp import VSPTick, VSPTickSyncer, VSP_TICK_SCHEMA
from .propagation import Block, BlockSyncer, BLOCK_SCHEMA, Vote, VoteSyncer, VOTE_SCHEMA
from ..datasync.coordinator import SyncCoordinator
from ..datasync.syncer import TableSyncer
from ..storage.store import SyncStore, TableSchema


DEFAULT_TABLES: List[Type[TableSyncer]] = [
    MempoolSyncer,
    VSPTickSyncer,
    BlockSyncer,
    VoteSyncer,
]

SCHEMAS: List[TableSchema] = [syncer.schema for syncer in DEFAULT_TABLES]


def register_default_syncers(coordinator: SyncCoordinator, store: SyncStore) -> None:
    """Bind every default table, served from ``store``."""
    for syncer_class in DEFAULT_TABLES:
        syncer = syncer_class(store)
        coordinator.add_syncer(syncer.table_name, syncer)


__all__ = [
    'DEFAULT_TABLES',
    'SCHEMAS',
    'register_default_syncers',
    'Mempool',
    'MempoolSyncer',
    'VSPTick',
    'VSPTickSyncer',
    'Block',
    'BlockSyncer',
    'Vote',
    'VoteSyncer',
    'MEMPOOL_SCHEMA',
    'VSP_TICK_SCHEMA',
    'BLOCK_SCHEMA',
    'VOTE_SCHEMA',
]
