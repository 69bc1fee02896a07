"""
Graph builder: turns the six record collections into one GraphSnapshot.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from .config import Settings, settings as default_settings
from .models import BuildReport, Edge, EdgeKind, GraphSnapshot, Node, NodeKind, utcnow

logger = logging.getLogger(__name__)

ID_FIELDS = ("id", "_id")


class RelationField(NamedTuple):
    field: str
    target: NodeKind
    relation: EdgeKind


RELATION_FIELDS: Dict[NodeKind, Tuple[RelationField, ...]] = {
    NodeKind.PROJECT: (
        RelationField("tasks", NodeKind.TASK, EdgeKind.PROJECT_TASK),
        RelationField("notes", NodeKind.NOTE, EdgeKind.PROJECT_NOTE),
        RelationField("people", NodeKind.PERSON, EdgeKind.PROJECT_PERSON),
    ),
    NodeKind.TASK: (
        RelationField("notes", NodeKind.NOTE, EdgeKind.NOTE_TASK),
        RelationField("project", NodeKind.PROJECT, EdgeKind.PROJECT_TASK),
    ),
    NodeKind.NOTE: (
        RelationField("tasks", NodeKind.TASK, EdgeKind.NOTE_TASK),
        RelationField("project", NodeKind.PROJECT, EdgeKind.PROJECT_NOTE),
        RelationField("people", NodeKind.PERSON, EdgeKind.NOTE_PERSON),
    ),
    NodeKind.PERSON: (
        RelationField("projects", NodeKind.PROJECT, EdgeKind.PERSON_PROJECT),
        RelationField("tasks", NodeKind.TASK, EdgeKind.PERSON_TASK),
        RelationField("notes", NodeKind.NOTE, EdgeKind.NOTE_PERSON),
    ),
    NodeKind.GOAL: (
        RelationField("projects", NodeKind.PROJECT, EdgeKind.GOAL_PROJECT),
        RelationField("habits", NodeKind.HABIT, EdgeKind.GOAL_HABIT),
    ),
    NodeKind.HABIT: (
        RelationField("goal", NodeKind.GOAL, EdgeKind.GOAL_HABIT),
    ),
}

# Collections are always ingested in this order, whatever order the caller passes them in.
BUILD_ORDER: Tuple[NodeKind, ...] = tuple(RELATION_FIELDS)


def record_id(record: Mapping[str, Any]) -> Optional[str]:
    for key in ID_FIELDS:
        value = record.get(key)
        if value is not None and value != "":
            return str(value)
    return None


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _title(kind: NodeKind, record: Mapping[str, Any]) -> str:
    if kind is NodeKind.PERSON:
        parts = (record.get("firstName"), record.get("lastName"))
        return " ".join(str(part) for part in parts if part)
    title = record.get("title")
    return "" if title is None else str(title)


def _status(kind: NodeKind, record: Mapping[str, Any]) -> Optional[str]:
    if kind is NodeKind.HABIT:
        return "active" if record.get("isActive") else "inactive"
    if kind is NodeKind.NOTE:
        value = record.get("type")
    elif kind is NodeKind.PERSON:
        value = record.get("relationship")
    else:
        value = record.get("status")
    return None if value is None else str(value)


class GraphBuilder:
    """
    Single linear pass over the collections. Targets are not resolved here;
    dangling references are left for the query side to drop.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or default_settings

    def _key(self, kind: NodeKind, raw_id: str) -> str:
        if self.settings.namespace_ids:
            return f"{kind.value}:{raw_id}"
        return raw_id

    def _reference(self, entry: Any) -> Optional[str]:
        if isinstance(entry, Mapping):
            return record_id(entry)
        if entry is None or entry == "":
            return None
        return str(entry)

    def build(
        self,
        collections: Mapping[NodeKind | str, Optional[Sequence[Any]]],
        sequence: int = 0,
    ) -> GraphSnapshot:
        by_kind: Dict[NodeKind, Sequence[Any]] = {}
        for key, records in collections.items():
            by_kind[NodeKind.parse(key)] = records or ()

        nodes: Dict[str, Node] = {}
        edges: List[Edge] = []
        skipped_records = duplicate_ids = skipped_references = 0

        for kind in BUILD_ORDER:
            for position, record in enumerate(by_kind.get(kind, ())):
                if not isinstance(record, Mapping):
                    skipped_records += 1
                    logger.warning("Skipping %s record #%d: not a mapping", kind.value, position)
                    continue
                raw_id = record_id(record)
                if raw_id is None:
                    skipped_records += 1
                    logger.warning("Skipping %s record #%d: no identifier", kind.value, position)
                    continue
                node_id = self._key(kind, raw_id)
                if node_id in nodes:
                    duplicate_ids += 1
                    logger.warning(
                        "Skipping %s record '%s': id already used by a %s",
                        kind.value,
                        node_id,
                        nodes[node_id].kind.value,
                    )
                    continue

                reference_ids: List[str] = []
                for link in RELATION_FIELDS[kind]:
                    for entry in _as_list(record.get(link.field)):
                        ref = self._reference(entry)
                        if ref is None:
                            skipped_references += 1
                            continue
                        target = self._key(link.target, ref)
                        reference_ids.append(target)
                        edges.append(
                            Edge(
                                source=node_id,
                                target=target,
                                relation=link.relation,
                                weight=link.relation.default_weight,
                            )
                        )

                nodes[node_id] = Node(
                    id=node_id,
                    kind=kind,
                    title=_title(kind, record),
                    status=_status(kind, record),
                    reference_ids=tuple(reference_ids),
                    payload=record,
                )

        report = BuildReport(
            skipped_records=skipped_records,
            duplicate_ids=duplicate_ids,
            skipped_references=skipped_references,
        )
        if report.warnings:
            logger.warning(
                "Graph built with %d warnings (%d skipped records, %d duplicate ids, %d empty references)",
                report.warnings,
                skipped_records,
                duplicate_ids,
                skipped_references,
            )
        logger.debug("Built graph #%d: %d nodes, %d edges", sequence, len(nodes), len(edges))
        return GraphSnapshot(
            nodes=nodes,
            edges=tuple(edges),
            built_at=utcnow(),
            sequence=sequence,
            report=report,
        )


def build_snapshot(
    collections: Mapping[NodeKind | str, Optional[Sequence[Any]]],
    settings: Settings | None = None,
    sequence: int = 0,
) -> GraphSnapshot:
    return GraphBuilder(settings).build(collections, sequence=sequence)

