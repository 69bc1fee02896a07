"""
Connectivity ranking and aggregate statistics over a snapshot.
"""
from __future__ import annotations

from typing import List

import networkx as nx

from .config import settings
from .models import GraphSnapshot, GraphStats, Node, NodeKind


def to_networkx(snapshot: GraphSnapshot) -> nx.MultiDiGraph:
    """
    Materialize the snapshot as a MultiDiGraph. Dangling edges are left out.
    """
    graph = nx.MultiDiGraph()
    for node in snapshot.nodes.values():
        graph.add_node(node.id, kind=node.kind.value, title=node.title)
    for edge in snapshot.edges:
        if edge.target not in snapshot.nodes:
            continue
        graph.add_edge(edge.source, edge.target, relation=edge.relation.value, weight=edge.weight)
    return graph


def degree(snapshot: GraphSnapshot, node_id: str) -> int:
    """Outgoing references only; incoming links are reported by in_degree."""
    node = snapshot.nodes.get(node_id)
    return node.degree if node else 0


def in_degree(snapshot: GraphSnapshot, node_id: str) -> int:
    """Resolvable incoming edges; references to missing ids count nowhere."""
    graph = to_networkx(snapshot)
    return graph.in_degree(node_id) if node_id in graph else 0


def top_connected(snapshot: GraphSnapshot, k: int) -> List[Node]:
    if k < 0:
        raise ValueError("k must be non-negative.")
    # sorted() is stable, so equal degrees keep build order
    ranked = sorted(snapshot.nodes.values(), key=lambda node: node.degree, reverse=True)
    return ranked[:k]


def dangling_references(snapshot: GraphSnapshot) -> int:
    return sum(1 for edge in snapshot.edges if edge.target not in snapshot.nodes)


def compute_stats(snapshot: GraphSnapshot, top_k: int | None = None) -> GraphStats:
    top_k = settings.top_k if top_k is None else top_k
    counts_by_kind = {kind: 0 for kind in NodeKind}
    for node in snapshot.nodes.values():
        counts_by_kind[node.kind] += 1

    graph = to_networkx(snapshot)
    orphaned = sum(1 for _, node_degree in graph.degree() if node_degree == 0)
    clusters = sum(1 for component in nx.weakly_connected_components(graph) if len(component) > 1)
    ranked = top_connected(snapshot, top_k)

    return GraphStats(
        total_nodes=len(snapshot.nodes),
        total_edges=len(snapshot.edges),
        counts_by_kind=counts_by_kind,
        top_connected=ranked,
        max_degree=max((node.degree for node in snapshot.nodes.values()), default=0),
        orphaned_nodes=orphaned,
        clusters=clusters,
        dangling_references=dangling_references(snapshot),
        total_weight=sum(edge.weight for edge in snapshot.edges),
        built_at=snapshot.built_at,
    )
