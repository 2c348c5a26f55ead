"""
Per-table sync adapters.

A ``Syncer`` exposes the four operations the coordinator needs without
knowing what a table's rows look like:

- ``last_entry``: cursor of the newest locally persisted row
- ``collect``: fetch one page from a peer
- ``retrieve``: serve one page to a peer
- ``append``: persist a fetched page locally

``TableSyncer`` implements them for any table described by a pydantic
record model and a ``TableSchema``.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, Dict, Generic, List, Optional, Sequence, Type

from pydantic import AfterValidator, BaseModel, PlainSerializer

from .client import SyncClient
from .types import Page, RecordT
from ..storage.store import SyncStore, TableSchema
from ..utils.errors import DatabaseError
from ..utils.logging import get_logger


logger = get_logger("pdanalytics.sync.syncer")

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def to_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime with whole seconds."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0)


def format_timestamp(value: datetime) -> str:
    return to_utc(value).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(text))


# Record field type for timestamp cursor columns; serializes to the canonical
# text form so stored values sort chronologically.
Timestamp = Annotated[
    datetime,
    AfterValidator(to_utc),
    PlainSerializer(format_timestamp, return_type=str, when_used="json"),
]


class Cursor(ABC):
    """Encodes a table's cursor column value as the opaque wire string."""

    empty: ClassVar[str]

    @abstractmethod
    def encode(self, value: Any) -> str:
        ...

    @abstractmethod
    def decode(self, text: str) -> Any:
        """Parse a wire cursor into a value comparable with the column.

        Raises:
            ValueError: the cursor is not valid for this table
        """


class IntegerCursor(Cursor):
    """Cursor over an increasing integer column (ids, block heights)."""

    empty = "0"

    def encode(self, value: Any) -> str:
        return str(int(value))

    def decode(self, text: str) -> int:
        return int(text)


class TimestampCursor(Cursor):
    """Cursor over a UTC timestamp column stored as ``YYYY-MM-DDTHH:MM:SSZ`` text."""

    empty = "1970-01-01T00:00:00Z"

    def encode(self, value: Any) -> str:
        if isinstance(value, datetime):
            return format_timestamp(value)
        return format_timestamp(parse_timestamp(str(value)))

    def decode(self, text: str) -> str:
        return format_timestamp(parse_timestamp(text))


class Syncer(ABC):
    """Adapter contract between the coordinator and one table."""

    table_name: str

    @abstractmethod
    async def last_entry(self, store: SyncStore) -> str:
        """Return the cursor of the last record persisted in ``store``."""

    @abstractmethod
    async def collect(self, client: SyncClient, url: str) -> Page:
        """Fetch the page at ``url`` from a peer."""

    @abstractmethod
    async def retrieve(self, last: str, skip: int, take: int) -> Page:
        """Serve records newer than ``last`` to a peer."""

    @abstractmethod
    async def append(self, store: SyncStore, records: Sequence[Any]) -> int:
        """Persist fetched records into ``store``; returns rows inserted."""


class TableSyncer(Syncer, Generic[RecordT]):
    """Syncer for a table of pydantic records.

    Subclasses set ``record_model``, ``schema`` and ``cursor``. ``store`` is
    this instance's own store, used to answer peers.
    """

    record_model: ClassVar[Type[BaseModel]]
    schema: ClassVar[TableSchema]
    cursor: ClassVar[Cursor] = IntegerCursor()

    def __init__(self, store: SyncStore):
        self.store = store

    @property
    def table_name(self) -> str:
        return self.schema.name

    @property
    def page_type(self) -> Type[Page]:
        return Page[self.record_model]

    def to_row(self, record: Any) -> Dict[str, Any]:
        """Flatten a record into column values."""
        if not isinstance(record, self.record_model):
            record = self.record_model.model_validate(record)
        return record.model_dump(mode="json")

    def from_row(self, row: Dict[str, Any]) -> BaseModel:
        return self.record_model.model_validate(row)

    async def last_entry(self, store: SyncStore) -> str:
        value = await store.last_entry(self.table_name)
        if value is None:
            return self.cursor.empty
        return self.cursor.encode(value)

    async def collect(self, client: SyncClient, url: str) -> Page:
        return await client.fetch_page(url, self.page_type)

    async def retrieve(self, last: str, skip: int, take: int) -> Page:
        try:
            after = self.cursor.decode(last or self.cursor.empty)
        except ValueError:
            return self.page_type.failure(f"invalid cursor for {self.table_name}: {last!r}")

        try:
            rows, total = await self.store.fetch_for_sync(self.table_name, after, skip, take)
        except DatabaseError as e:
            logger.error("sync_retrieve_failed", table=self.table_name, error=str(e))
            return self.page_type.failure(str(e))

        records: Optional[List[BaseModel]] = [self.from_row(row) for row in rows] or None
        return self.page_type(success=True, records=records, total_count=total)

    async def append(self, store: SyncStore, records: Sequence[Any]) -> int:
        rows = [self.to_row(record) for record in records]
        inserted = await store.save_many_from_sync(self.table_name, rows)
        logger.debug(
            "sync_records_appended",
            store=store.label,
            table=self.table_name,
            received=len(rows),
            inserted=inserted,
        )
        return inserted


__all__ = [
    'Syncer',
    'TableSyncer',
    'Cursor',
    'IntegerCursor',
    'TimestampCursor',
    'format_timestamp',
    'parse_timestamp',
    'to_utc',
    'Timestamp',
]
