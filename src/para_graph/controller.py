"""
Refresh controller: holds the six source collections and republishes the graph.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .builder import GraphBuilder
from .config import Settings, settings as default_settings
from .errors import SourcesNotReadyError
from .models import GraphSnapshot, GraphStats, NeighborResult, Node, NodeKind
from .query import WILDCARD, QueryEngine
from .stats import compute_stats

logger = logging.getLogger(__name__)

_UNSET = object()


class RefreshState(str, Enum):
    STALE = "stale"
    READY = "ready"


class GraphView:
    """
    A snapshot with the stats and query engine computed over it. Published as one unit.
    """

    def __init__(self, snapshot: GraphSnapshot, stats: GraphStats) -> None:
        self.snapshot = snapshot
        self.stats = stats
        self.query = QueryEngine(snapshot)

    def search(self, text: str = "", kind: NodeKind | str | None = WILDCARD) -> List[Node]:
        return self.query.search(text, kind)

    def neighbors(self, node_id: str, limit: int | None = None) -> NeighborResult:
        return self.query.neighbors(node_id, limit)

    def get(self, node_id: str) -> Optional[Node]:
        return self.query.get(node_id)


class _Source:
    __slots__ = ("records", "origin", "version", "delivered")

    def __init__(self) -> None:
        self.records: Tuple[Any, ...] = ()
        self.origin: Any = None
        self.version: Any = _UNSET
        self.delivered = False


class RefreshController:
    """
    Stale until all six collections are delivered, Ready after a rebuild, Stale
    again as soon as any collection changes. The previous view keeps serving
    readers until the replacement is fully built.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or default_settings
        self.builder = GraphBuilder(self.settings)
        self._sources: Dict[NodeKind, _Source] = {kind: _Source() for kind in NodeKind}
        self._lock = threading.RLock()
        self._batch_depth = 0
        self._dirty = False
        self._sequence = 0
        self.rebuild_count = 0
        self.state = RefreshState.STALE
        empty = GraphSnapshot.empty()
        self._view = GraphView(empty, compute_stats(empty, self.settings.top_k))

    # ------------------------------------------------------------------
    # Published view
    # ------------------------------------------------------------------
    @property
    def current(self) -> GraphView:
        return self._view

    @property
    def snapshot(self) -> GraphSnapshot:
        return self._view.snapshot

    @property
    def stats(self) -> GraphStats:
        return self._view.stats

    def search(self, text: str = "", kind: NodeKind | str | None = WILDCARD) -> List[Node]:
        return self._view.search(text, kind)

    def neighbors(self, node_id: str, limit: int | None = None) -> NeighborResult:
        return self._view.neighbors(node_id, limit)

    def get(self, node_id: str) -> Optional[Node]:
        return self._view.get(node_id)

    # ------------------------------------------------------------------
    # Source updates
    # ------------------------------------------------------------------
    def missing(self) -> List[str]:
        return [kind.collection for kind, source in self._sources.items() if not source.delivered]

    def status(self) -> Dict[str, Any]:
        """
        State, published snapshot and counters read together under the lock.
        """
        with self._lock:
            snapshot = self._view.snapshot
            return {
                "state": self.state,
                "sequence": snapshot.sequence,
                "built_at": snapshot.built_at,
                "missing": self.missing(),
                "rebuilds": self.rebuild_count,
                "report": snapshot.report,
            }

    def deliver(self, kind: NodeKind | str, records: Optional[Iterable[Any]], version: Any = None) -> bool:
        """
        Store a freshly fetched collection. Returns True when it counted as a change.

        With a version, a change is a different version; without one, a different object.
        """
        kind = NodeKind.parse(kind)
        records = records if records is not None else ()
        with self._lock:
            source = self._sources[kind]
            if source.delivered:
                if version is not None and version == source.version:
                    return False
                if version is None and source.version is None and records is source.origin:
                    return False
            # copied once, rebuilds iterate it again
            source.records = tuple(records)
            source.origin = records
            source.version = version
            source.delivered = True
            self._mark_stale(f"{kind.collection} delivered")
            self._maybe_rebuild()
            return True

    def deliver_all(self, collections: Mapping[NodeKind | str, Optional[Iterable[Any]]]) -> int:
        changed = 0
        with self.batch():
            for kind, records in collections.items():
                changed += self.deliver(kind, records)
        return changed

    def invalidate(self, kind: NodeKind | str) -> None:
        """
        Mark a collection as being refetched. The current view stays live until it arrives.
        """
        kind = NodeKind.parse(kind)
        with self._lock:
            self._sources[kind].delivered = False
            self._mark_stale(f"{kind.collection} invalidated")

    @contextmanager
    def batch(self) -> Iterator["RefreshController"]:
        """
        Coalesce deliveries: at most one rebuild when the outermost batch exits.
        """
        with self._lock:
            self._batch_depth += 1
        try:
            yield self
        finally:
            with self._lock:
                self._batch_depth -= 1
                self._maybe_rebuild()

    def refresh(self) -> GraphView:
        with self._lock:
            missing = self.missing()
            if missing:
                raise SourcesNotReadyError(missing)
            return self._rebuild()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _mark_stale(self, reason: str) -> None:
        self._dirty = True
        if self.state is not RefreshState.STALE:
            logger.info("Graph marked stale: %s", reason)
        self.state = RefreshState.STALE

    def _maybe_rebuild(self) -> None:
        if self._batch_depth or not self._dirty or self.missing():
            return
        self._rebuild()

    def _rebuild(self) -> GraphView:
        self._sequence += 1
        collections = {kind: source.records for kind, source in self._sources.items()}
        snapshot = self.builder.build(collections, sequence=self._sequence)
        stats = compute_stats(snapshot, self.settings.top_k)
        view = GraphView(snapshot, stats)
        # single reference swap; readers holding the old view are unaffected
        self._view = view
        self._dirty = False
        self.state = RefreshState.READY
        self.rebuild_count += 1
        logger.info(
            "Published graph #%d: %d nodes, %d edges, %d dangling references",
            snapshot.sequence,
            stats.total_nodes,
            stats.total_edges,
            stats.dangling_references,
        )
        return view
