"""
Block and vote propagation records.

Blocks replicate by height; votes by the time they were first received.
Several votes can arrive within one second, so the vote cursor is inclusive.
"""

from pydantic import BaseModel

from ..datasync.syncer import IntegerCursor, TableSyncer, Timestamp, TimestampCursor
from ..storage.store import TableSchema


class Block(BaseModel):
    block_receive_time: Timestamp
    block_internal_time: Timestamp
    block_height: int
    block_hash: str


class Vote(BaseModel):
    hash: str
    receive_time: Timestamp
    targeted_block_time: Timestamp
    block_receive_time: Timestamp
    voting_on: int
    block_hash: str
    validator_id: int
    validity: str


BLOCK_SCHEMA = TableSchema(
    name="block",
    columns=(
        ("block_receive_time", "TEXT NOT NULL"),
        ("block_internal_time", "TEXT NOT NULL"),
        ("block_height", "INTEGER NOT NULL"),
        ("block_hash", "TEXT NOT NULL"),
    ),
    cursor_column="block_height",
    key_columns=("block_hash",),
)

VOTE_SCHEMA = TableSchema(
    name="vote",
    columns=(
        ("hash", "TEXT NOT NULL"),
        ("receive_time", "TEXT NOT NULL"),
        ("targeted_block_time", "TEXT NOT NULL"),
        ("block_receive_time", "TEXT NOT NULL"),
        ("voting_on", "INTEGER NOT NULL"),
        ("block_hash", "TEXT NOT NULL"),
        ("validator_id", "INTEGER NOT NULL"),
        ("validity", "TEXT NOT NULL"),
    ),
    cursor_column="receive_time",
    key_columns=("hash",),
    inclusive_cursor=True,
)


class BlockSyncer(TableSyncer[Block]):
    record_model = Block
    schema = BLOCK_SCHEMA
    cursor = IntegerCursor()


class VoteSyncer(TableSyncer[Vote]):
    record_model = Vote
    schema = VOTE_SCHEMA
    cursor = TimestampCursor()
