"""Data types shared by the sync client, server and coordinator."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from .syncer import Syncer
    from ..storage.store import SyncStore


RecordT = TypeVar("RecordT")

SYNC_PATH = "/api/sync"
DEFAULT_PAGE_SIZE = 1000


class Page(BaseModel, Generic[RecordT]):
    """One chunk of a paginated sync response.

    ``records`` absent (or empty) means there is nothing more to pull;
    ``total_count`` then tells whether the walk finished (> 0) or the caller
    was already current (0 or absent).
    """
    success: bool
    message: Optional[str] = None
    records: Optional[List[RecordT]] = None
    total_count: Optional[int] = None

    model_config = ConfigDict(extra="ignore")

    @property
    def is_exhausted(self) -> bool:
        return not self.records

    @property
    def is_current(self) -> bool:
        return self.is_exhausted and not self.total_count

    def to_wire(self) -> Dict[str, Any]:
        """JSON body as served by the sync API."""
        body = self.model_dump(mode="json", exclude_none=True)
        body.setdefault("records", None)
        return body

    @classmethod
    def failure(cls, message: str) -> "Page[Any]":
        return cls(success=False, message=message)


@dataclass(frozen=True)
class SourceDescriptor:
    """An upstream instance paired with the local store its data lands in."""
    url: str
    store: "SyncStore"
    label: str

    @property
    def is_passive(self) -> bool:
        """Passive sources are kept for offline comparison and never polled."""
        return not self.url


@dataclass(frozen=True)
class TableBinding:
    table_name: str
    syncer: "Syncer"


class SyncOutcome(str, Enum):
    UP_TO_DATE = "up_to_date"
    COMPLETED = "completed"


@dataclass
class SyncReport:
    """Result of replicating one table from one source."""
    source: str
    table: str
    outcome: SyncOutcome
    records: int = 0  # received from the source
    inserted: int = 0  # new locally; re-delivered rows are not counted
    pages: int = 0
    duration: float = 0.0  # seconds


@dataclass
class SweepReport:
    """Result of one pass over every active source and table."""
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    reports: List[SyncReport] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)
    visited: List[str] = field(default_factory=list)  # "label/table" in processing order

    @property
    def records(self) -> int:
        """Rows newly stored during the sweep."""
        return sum(report.inserted for report in self.reports)

    def add_report(self, report: SyncReport) -> None:
        self.visited.append(f"{report.source}/{report.table}")
        self.reports.append(report)

    def add_failure(self, source: str, table: str, error: Exception) -> None:
        key = f"{source}/{table}"
        self.visited.append(key)
        self.failures[key] = str(error)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "records": self.records,
            "synced": [f"{r.source}/{r.table}" for r in self.reports],
            "failures": dict(self.failures),
        }


__all__ = [
    'Page',
    'RecordT',
    'SourceDescriptor',
    'TableBinding',
    'SyncOutcome',
    'SyncReport',
    'SweepReport',
    'SYNC_PATH',
    'DEFAULT_PAGE_SIZE',
]
