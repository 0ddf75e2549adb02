"""
Design-time graph model.

Nodes and edges as produced by the diagram editor, plus the small amount of
bookkeeping the editor relies on: parent links are broken when the parent is
deleted, edges touching a deleted node are dropped, and node ids are never
reused. Ids are supplied by the caller; ``new_node_id`` returns a random token
for callers that have none.
"""

import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from .catalog import ResourceKind, resolve_kind
from .errors import ValidationError
from .types import EdgeDocument, NodeConfig, NodeDocument

_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")


def new_node_id() -> str:
    """Random, collision-resistant node identifier."""
    return uuid.uuid4().hex


def normalise_label(label: str) -> str:
    """
    Derive a Terraform local name from a user-facing label.

    Lowercases the label and replaces every run of non-alphanumeric
    characters with a single underscore. Terraform names may not start with a
    digit, so such names get an ``r_`` prefix.
    """
    name = _NON_ALNUM_RUN.sub("_", label.lower())
    if name and name[0].isdigit():
        name = f"r_{name}"
    return name


class ConnectionKind(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"
    DATABASE = "database"


@dataclass
class ResourceNode:
    """One design-time element on the canvas."""

    id: str
    kind: ResourceKind
    label: str
    parent: Optional[str] = None
    config: NodeConfig = field(default_factory=dict)
    raw_kind: str = ""

    def __post_init__(self) -> None:
        if not self.id or not isinstance(self.id, str):
            raise ValidationError("Node id must be a non-empty string")
        if not isinstance(self.config, Mapping):
            raise ValidationError(f"Node '{self.id}' config must be a mapping")
        if not self.raw_kind:
            self.raw_kind = self.kind.value

    @property
    def local_name(self) -> str:
        name = normalise_label(self.label or "")
        if not name.strip("_"):
            name = normalise_label(f"resource_{self.id}")
        return name

    @classmethod
    def from_dict(cls, doc: NodeDocument) -> "ResourceNode":
        """
        Build a node from its serialised form.

        Accepts both the flat form (``id, kind, label, parent, config``) and the
        editor's form, where kind, label and config live under ``data`` and the
        parent is ``parentNode``.
        """
        if not isinstance(doc, Mapping):
            raise ValidationError("Node document must be a mapping")
        data = doc.get("data") or {}
        raw_kind = (
            doc.get("kind")
            or data.get("terraformType")
            or data.get("type")
            or data.get("resourceType")
            or doc.get("type")
            or ""
        )
        node_id = doc.get("id")
        label = doc.get("label") or data.get("label") or str(node_id or "")
        config = doc.get("config", data.get("config")) or {}
        return cls(
            id=node_id,
            kind=resolve_kind(raw_kind),
            label=str(label),
            parent=doc.get("parent") or doc.get("parentNode") or None,
            config=dict(config) if isinstance(config, Mapping) else config,
            raw_kind=str(raw_kind),
        )

    def to_dict(self) -> NodeDocument:
        return {
            "id": self.id,
            "kind": self.raw_kind if self.kind is ResourceKind.UNKNOWN else self.kind.value,
            "label": self.label,
            "parent": self.parent,
            "config": dict(self.config),
        }


def derive_connection_kind(source: ResourceNode, target: ResourceNode) -> ConnectionKind:
    """Connection kind from endpoint kinds, as computed when an edge is drawn."""
    kinds = {source.kind, target.kind}
    if ResourceKind.RELATIONAL_DATABASE in kinds:
        return ConnectionKind.DATABASE
    if ResourceKind.INTERNET_GATEWAY in kinds:
        return ConnectionKind.PUBLIC
    return ConnectionKind.PRIVATE


@dataclass(frozen=True)
class Edge:
    """Directional relation between two nodes; advisory metadata only."""

    source: str
    target: str
    connection_kind: ConnectionKind = ConnectionKind.PRIVATE

    @classmethod
    def between(cls, source: ResourceNode, target: ResourceNode) -> "Edge":
        return cls(source.id, target.id, derive_connection_kind(source, target))

    @classmethod
    def from_dict(
        cls, doc: EdgeDocument, nodes: Optional[Mapping[str, ResourceNode]] = None
    ) -> "Edge":
        """
        Build an edge from its serialised form.

        A stored connection kind is kept as is; it is only derived when the
        document carries none.
        """
        if not isinstance(doc, Mapping) or not doc.get("source") or not doc.get("target"):
            raise ValidationError("Edge document must have a source and a target")
        data = doc.get("data") or {}
        stored = doc.get("connection_kind") or doc.get("connectionKind") or data.get("connectionType")
        if stored:
            try:
                kind = ConnectionKind(str(stored).lower())
            except ValueError:
                raise ValidationError(f"Unknown connection kind: {stored}")
            return cls(doc["source"], doc["target"], kind)
        if nodes and doc["source"] in nodes and doc["target"] in nodes:
            return cls.between(nodes[doc["source"]], nodes[doc["target"]])
        return cls(doc["source"], doc["target"])

    def to_dict(self) -> EdgeDocument:
        return {
            "source": self.source,
            "target": self.target,
            "connection_kind": self.connection_kind.value,
        }


class ResourceGraph:
    """Ordered collection of nodes and edges with editor bookkeeping."""

    def __init__(
        self,
        nodes: Iterable[ResourceNode] = (),
        edges: Iterable[Edge] = (),
    ) -> None:
        self._nodes: Dict[str, ResourceNode] = {}
        self._edges: List[Edge] = []
        self._retired: Set[str] = set()
        for node in nodes:
            self.add_node(node)
        for edge in edges:
            self.add_edge(edge)

    @property
    def nodes(self) -> List[ResourceNode]:
        return list(self._nodes.values())

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges)

    def get(self, node_id: str) -> Optional[ResourceNode]:
        return self._nodes.get(node_id)

    def add_node(self, node: ResourceNode) -> ResourceNode:
        if node.id in self._nodes:
            raise ValidationError(f"Duplicate node id: {node.id}")
        if node.id in self._retired:
            raise ValidationError(f"Node id '{node.id}' belonged to a deleted node and cannot be reused")
        self._nodes[node.id] = node
        return node

    def add_edge(self, edge: Edge) -> Edge:
        for endpoint in (edge.source, edge.target):
            if endpoint not in self._nodes:
                raise ValidationError(f"Edge references unknown node: {endpoint}")
        self._edges.append(edge)
        return edge

    def connect(self, source_id: str, target_id: str) -> Edge:
        """Draw an edge, deriving its connection kind from the current endpoint kinds."""
        source, target = self._nodes.get(source_id), self._nodes.get(target_id)
        if source is None or target is None:
            missing = source_id if source is None else target_id
            raise ValidationError(f"Edge references unknown node: {missing}")
        return self.add_edge(Edge.between(source, target))

    def remove_node(self, node_id: str) -> ResourceNode:
        node = self._nodes.pop(node_id, None)
        if node is None:
            raise ValidationError(f"Unknown node: {node_id}")
        self._retired.add(node_id)
        self._edges = [e for e in self._edges if node_id not in (e.source, e.target)]
        for other in self._nodes.values():
            if other.parent == node_id:
                other.parent = None
        return node

    @classmethod
    def from_dict(cls, doc: Mapping[str, Any]) -> "ResourceGraph":
        nodes = [ResourceNode.from_dict(n) for n in doc.get("nodes") or []]
        by_id = {n.id: n for n in nodes}
        edges = [Edge.from_dict(e, by_id) for e in doc.get("edges") or []]
        return cls(nodes, edges)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self._nodes.values()],
            "edges": [e.to_dict() for e in self._edges],
        }
