"""
Domain records shared by the sync engine, the Graph Store and the API layer.

These are plain dataclasses decoupled from the ORM so the reconciler can be
exercised against any store (SQL, in-memory fakes in tests).

Node identity is a tagged union:
  - internal nodes (pillar/cluster/supporting/planned) may carry a `slug`
  - external nodes carry a `url`
Exactly one identity field is meaningful per type; this is checked on
construction.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Dict, List, Optional


class NodeType(str, Enum):
    PILLAR = "pillar"
    CLUSTER = "cluster"
    SUPPORTING = "supporting"
    PLANNED = "planned"
    EXTERNAL = "external"


class NodeStatus(str, Enum):
    PLANNED = "planned"
    WRITING = "writing"
    PUBLISHED = "published"
    NEEDS_UPDATE = "needs_update"


class EdgeType(str, Enum):
    HIERARCHY = "hierarchy"
    SIBLING = "sibling"
    CROSS_CLUSTER = "cross_cluster"
    OUTBOUND = "outbound"
    BACKLINK = "backlink"
    INTERLINKS = "interlinks"


class Handle(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


# Edge types owned by the reconciler. Everything else is user-managed.
AUTO_EDGE_TYPES = frozenset({EdgeType.INTERLINKS, EdgeType.OUTBOUND})


@dataclass(frozen=True)
class Position:
    x: float
    y: float


@dataclass(frozen=True)
class ContentNode:
    id: str
    project_id: str
    node_type: NodeType
    title: str
    slug: Optional[str] = None
    url: Optional[str] = None
    status: NodeStatus = NodeStatus.PLANNED
    position: Optional[Position] = None
    target_keyword: Optional[str] = None

    def __post_init__(self) -> None:
        # Coerce raw strings coming from the ORM / API payloads
        object.__setattr__(self, "node_type", NodeType(self.node_type))
        object.__setattr__(self, "status", NodeStatus(self.status))
        if self.node_type is NodeType.EXTERNAL:
            if self.slug:
                raise ValueError(f"external node {self.id} cannot carry a slug")
            if not (self.url or "").strip():
                raise ValueError(f"external node {self.id} requires a url")
        elif self.url:
            raise ValueError(f"{self.node_type.value} node {self.id} cannot carry a url")

    @property
    def is_external(self) -> bool:
        return self.node_type is NodeType.EXTERNAL

    def as_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["node_type"] = self.node_type.value
        data["status"] = self.status.value
        return data


@dataclass(frozen=True)
class Edge:
    id: str
    project_id: str
    source_node_id: str
    target_node_id: str
    edge_type: EdgeType
    source_handle: Handle = Handle.RIGHT
    target_handle: Handle = Handle.LEFT
    label: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "edge_type", EdgeType(self.edge_type))
        object.__setattr__(self, "source_handle", Handle(self.source_handle))
        object.__setattr__(self, "target_handle", Handle(self.target_handle))

    @property
    def is_auto_managed(self) -> bool:
        return self.edge_type in AUTO_EDGE_TYPES

    def as_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["edge_type"] = self.edge_type.value
        data["source_handle"] = self.source_handle.value
        data["target_handle"] = self.target_handle.value
        return data


@dataclass(frozen=True)
class Article:
    node_id: str
    project_id: str
    content: str = ""
    word_count: int = 0


@dataclass
class SyncReport:
    """Outcome of one reconciliation run."""

    edges_created: int = 0
    edges_deleted: int = 0
    external_nodes_created: int = 0
    warnings: List[str] = field(default_factory=list)
    skipped: Optional[str] = None

    @property
    def mutations(self) -> int:
        return self.edges_created + self.edges_deleted + self.external_nodes_created

    def as_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass
class UnlinkReport:
    content_mutated: bool = False
    anchors_removed: int = 0
    edge_deleted: bool = False

    def as_dict(self) -> Dict[str, object]:
        return asdict(self)


__all__ = [
    "NodeType",
    "NodeStatus",
    "EdgeType",
    "Handle",
    "AUTO_EDGE_TYPES",
    "Position",
    "ContentNode",
    "Edge",
    "Article",
    "SyncReport",
    "UnlinkReport",
]
