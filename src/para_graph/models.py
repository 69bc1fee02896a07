"""
Pydantic models for nodes, edges, snapshots and query results.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .errors import InvalidKindFilterError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NodeKind(str, Enum):
    PROJECT = "project"
    TASK = "task"
    NOTE = "note"
    PERSON = "person"
    GOAL = "goal"
    HABIT = "habit"

    @property
    def collection(self) -> str:
        """Name of the source collection holding records of this kind."""
        return _COLLECTION_NAMES[self]

    @classmethod
    def parse(cls, value: "NodeKind | str") -> "NodeKind":
        """
        Accept a NodeKind, its value ("task") or its collection name ("tasks").
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            for kind in cls:
                if lowered in (kind.value, kind.collection):
                    return kind
        raise InvalidKindFilterError(value)


_COLLECTION_NAMES = {
    NodeKind.PROJECT: "projects",
    NodeKind.TASK: "tasks",
    NodeKind.NOTE: "notes",
    NodeKind.PERSON: "people",
    NodeKind.GOAL: "goals",
    NodeKind.HABIT: "habits",
}


class EdgeKind(str, Enum):
    PROJECT_TASK = "project_task"
    PROJECT_NOTE = "project_note"
    PROJECT_PERSON = "project_person"
    PERSON_PROJECT = "person_project"
    PERSON_TASK = "person_task"
    NOTE_TASK = "note_task"
    NOTE_PERSON = "note_person"
    GOAL_PROJECT = "goal_project"
    GOAL_HABIT = "goal_habit"

    @property
    def default_weight(self) -> int:
        # goals anchor the projects under them more strongly than plain links
        return 2 if self is EdgeKind.GOAL_PROJECT else 1


class Node(BaseModel):
    """
    One source record. The payload is the caller's record object itself, not a copy,
    so edits made to a record after delivery show through here.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Record identifier, unique across all collections")
    kind: NodeKind
    title: str = ""
    status: Optional[str] = None
    reference_ids: Tuple[str, ...] = ()
    payload: Any = None

    @property
    def degree(self) -> int:
        return len(self.reference_ids)


class Edge(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    relation: EdgeKind
    weight: int = Field(1, ge=1)


class BuildReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    skipped_records: int = 0
    duplicate_ids: int = 0
    skipped_references: int = 0

    @property
    def warnings(self) -> int:
        return self.skipped_records + self.duplicate_ids + self.skipped_references


class GraphSnapshot(BaseModel):
    """
    One fully built graph. Never mutated once published; a refresh builds a new one.
    """

    model_config = ConfigDict(frozen=True)

    nodes: Mapping[str, Node] = Field(default_factory=dict, validate_default=True)
    edges: Tuple[Edge, ...] = ()
    built_at: datetime = Field(default_factory=utcnow)
    sequence: int = 0
    report: BuildReport = Field(default_factory=BuildReport)

    @field_validator("nodes", mode="after")
    @classmethod
    def _read_only_nodes(cls, value: Mapping[str, Node]) -> Mapping[str, Node]:
        return MappingProxyType(dict(value))

    @field_serializer("nodes")
    def _serialize_nodes(self, value: Mapping[str, Node]) -> Dict[str, Node]:
        return dict(value)

    @classmethod
    def empty(cls) -> "GraphSnapshot":
        return cls()

    def export(self) -> Dict[str, Any]:
        """
        JSON-ready document of the snapshot for the caller to save or ship.
        """
        return {
            "built_at": self.built_at.isoformat(),
            "sequence": self.sequence,
            "nodes": [node.model_dump(mode="json") for node in self.nodes.values()],
            "edges": [edge.model_dump(mode="json") for edge in self.edges],
            "report": self.report.model_dump(),
        }


class GraphStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_nodes: int
    total_edges: int
    counts_by_kind: Mapping[NodeKind, int]
    top_connected: Tuple[Node, ...]
    max_degree: int = 0
    orphaned_nodes: int = 0
    clusters: int = 0
    dangling_references: int = 0
    total_weight: int = 0
    built_at: Optional[datetime] = None

    @field_validator("counts_by_kind", mode="after")
    @classmethod
    def _read_only_counts(cls, value: Mapping[NodeKind, int]) -> Mapping[NodeKind, int]:
        return MappingProxyType(dict(value))

    @field_serializer("counts_by_kind")
    def _serialize_counts(self, value: Mapping[NodeKind, int]) -> Dict[str, int]:
        return {kind.value: count for kind, count in value.items()}


class NeighborResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    nodes: List[Node]
    remaining: int = 0
