"""
Read-only queries for the explorer panel: search, neighbor drill-down, lookup.
"""
from __future__ import annotations

from typing import List, Optional

from .config import settings
from .models import GraphSnapshot, NeighborResult, Node, NodeKind

WILDCARD = "all"


def parse_kind_filter(kind: NodeKind | str | None) -> Optional[NodeKind]:
    """
    None or "all" means no filter. Anything unrecognised raises InvalidKindFilterError.
    """
    if kind is None:
        return None
    if isinstance(kind, str) and kind.strip().lower() == WILDCARD:
        return None
    return NodeKind.parse(kind)


class QueryEngine:
    def __init__(self, snapshot: GraphSnapshot) -> None:
        self.snapshot = snapshot

    def get(self, node_id: str) -> Optional[Node]:
        return self.snapshot.nodes.get(node_id)

    def search(self, text: str = "", kind: NodeKind | str | None = WILDCARD) -> List[Node]:
        """
        Case-insensitive substring match on titles, in snapshot order. No relevance ranking.
        """
        wanted = parse_kind_filter(kind)
        needle = (text or "").lower()
        return [
            node
            for node in self.snapshot.nodes.values()
            if needle in node.title.lower() and (wanted is None or node.kind is wanted)
        ]

    def neighbors(self, node_id: str, limit: int | None = None) -> NeighborResult:
        limit = settings.neighbor_limit if limit is None else limit
        if limit < 0:
            raise ValueError("limit must be non-negative.")
        node = self.get(node_id)
        if not node:
            return NeighborResult(nodes=[])
        # unresolvable ids are dropped, upstream data drift is expected
        resolved = [
            self.snapshot.nodes[ref] for ref in node.reference_ids if ref in self.snapshot.nodes
        ]
        return NeighborResult(nodes=resolved[:limit], remaining=max(len(resolved) - limit, 0))

    def referrers(self, node_id: str) -> List[Node]:
        sources = {edge.source for edge in self.snapshot.edges if edge.target == node_id}
        return [node for node in self.snapshot.nodes.values() if node.id in sources]
