"""Table bindings and upstream sources, fixed at startup."""

from typing import Dict, List, Optional, Tuple

from .syncer import Syncer
from .types import SourceDescriptor, TableBinding
from ..storage.store import SyncStore
from ..utils.errors import RegistryFrozenError
from ..utils.logging import get_logger


logger = get_logger("pdanalytics.sync.registry")


class SyncRegistry:
    """
    Ordered table -> syncer bindings plus the ordered list of sources.

    Registration order fixes sweep order. Mutation is only allowed until
    ``freeze`` is called; afterwards the registry is read-only.
    """

    def __init__(self):
        self._bindings: Dict[str, TableBinding] = {}
        self._order: List[str] = []
        self._sources: List[SourceDescriptor] = []
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RegistryFrozenError()

    def bind(self, table: str, syncer: Syncer) -> None:
        """Bind ``syncer`` to ``table``; a rebind keeps the original position."""
        self._check_mutable()
        if table not in self._bindings:
            self._order.append(table)
        else:
            logger.warning("syncer_rebound", table=table)
        self._bindings[table] = TableBinding(table_name=table, syncer=syncer)

    def add_source(self, url: str, store: SyncStore, label: Optional[str] = None) -> SourceDescriptor:
        self._check_mutable()
        source = SourceDescriptor(url=url.strip(), store=store, label=label or store.label)
        self._sources.append(source)
        logger.info(
            "sync_source_registered",
            label=source.label,
            url=source.url or None,
            passive=source.is_passive,
        )
        return source

    def lookup(self, table: str) -> Tuple[Optional[Syncer], bool]:
        binding = self._bindings.get(table)
        if binding is None:
            return None, False
        return binding.syncer, True

    def tables(self) -> List[str]:
        return list(self._order)

    def bindings(self) -> List[TableBinding]:
        """Bindings in registration order."""
        return [self._bindings[table] for table in self._order]

    def sources(self) -> List[SourceDescriptor]:
        return list(self._sources)

    def active_sources(self) -> List[SourceDescriptor]:
        return [source for source in self._sources if not source.is_passive]

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, table: str) -> bool:
        return table in self._bindings


__all__ = ['SyncRegistry']
