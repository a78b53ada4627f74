from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Literal

logger = logging.getLogger(__name__)

NodeKind = Literal[
    "greeting",
    "question",
    "customer-response",
    "webhook",
    "transfer",
    "end-call",
    "pixel-event",
]

DEFAULT_LABEL = "next"
YES = "Yes"
NO = "No"

# Editor palette names and older payload names -> canonical kind.
KIND_ALIASES: dict[str, str] = {
    "greetingnode": "greeting",
    "questionnode": "question",
    "customerresponsenode": "customer-response",
    "customer response": "customer-response",
    "user-response": "customer-response",
    "webhooknode": "webhook",
    "transfernode": "transfer",
    "transfer call": "transfer",
    "endcallnode": "end-call",
    "end call": "end-call",
    "ai response": "response",
}


def canonical_kind(kind: str | None) -> str:
    """Best-effort kind name used for matching only; the node keeps its own kind."""
    k = (kind or "").strip().lower()
    if k in KIND_ALIASES:
        return KIND_ALIASES[k]
    if "question" in k:
        return "question"
    if "customer" in k or "user-response" in k:
        return "customer-response"
    if "response" in k:
        return "response"
    if k.startswith("end") or "end-call" in k or "endcall" in k:
        return "end-call"
    return k


def edge_id(source: str, target: str, taken: Iterable[str] = ()) -> str:
    base = f"edge-{source}-{target}"
    taken = set(taken)
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


@dataclass
class Position:
    x: float
    y: float

    def to_wire(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_wire(cls, raw: Any) -> Position | None:
        if not isinstance(raw, dict):
            return None
        try:
            return cls(x=float(raw.get("x", 0)), y=float(raw.get("y", 0)))
        except (TypeError, ValueError):
            return None


@dataclass
class Node:
    id: str
    kind: str
    payload: dict[str, Any] = field(default_factory=dict)
    position: Position | None = None

    @property
    def text(self) -> str:
        payload = self.payload if isinstance(self.payload, dict) else {}
        t = payload.get("text") or payload.get("prompt") or ""
        return t if isinstance(t, str) else str(t)

    def to_wire(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "type": self.kind, "data": self.payload}
        if self.position is not None:
            out["position"] = self.position.to_wire()
        return out

    @classmethod
    def from_wire(cls, raw: dict[str, Any]) -> Node:
        data = raw.get("data")
        if data is None:
            data = {}
        elif not isinstance(data, dict):
            data = {"text": str(data)}
        return cls(
            id=str(raw.get("id", "")),
            kind=str(raw.get("type") or "Default"),
            payload=dict(data),
            position=Position.from_wire(raw.get("position")),
        )


@dataclass
class Edge:
    id: str
    source: str
    target: str
    label: str = DEFAULT_LABEL
    data: dict[str, Any] | None = None

    def to_wire(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": "default",
            "label": self.label,
        }
        if self.data:
            out["data"] = self.data
        return out

    @classmethod
    def from_wire(cls, raw: dict[str, Any]) -> Edge:
        source = str(raw.get("source", ""))
        target = str(raw.get("target", ""))
        data = raw.get("data") if isinstance(raw.get("data"), dict) else None
        label = raw.get("label") or (data or {}).get("label") or DEFAULT_LABEL
        if data is not None:
            data = {k: v for k, v in data.items() if k != "label"} or None
        return cls(
            id=str(raw.get("id") or edge_id(source, target)),
            source=source,
            target=target,
            label=str(label),
            data=data,
        )


@dataclass
class Pathway:
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)

    def node(self, node_id: str) -> Node | None:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def index_of(self, node_id: str) -> int:
        for i, n in enumerate(self.nodes):
            if n.id == node_id:
                return i
        return -1

    def outgoing(self, node_id: str) -> list[Edge]:
        return [e for e in self.edges if e.source == node_id]

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    def edge_ids(self) -> set[str]:
        return {e.id for e in self.edges}

    def dangling_edges(self) -> list[Edge]:
        ids = self.node_ids()
        return [e for e in self.edges if e.source not in ids or e.target not in ids]

    def to_wire(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_wire() for n in self.nodes],
            "edges": [e.to_wire() for e in self.edges],
        }

    @classmethod
    def from_wire(cls, raw: dict[str, Any]) -> Pathway:
        nodes: list[Node] = []
        raw_nodes = raw.get("nodes")
        for item in raw_nodes if isinstance(raw_nodes, list) else []:
            if not isinstance(item, dict):
                logger.warning("skipping non-object node entry: %r", item)
                continue
            nodes.append(Node.from_wire(item))
        edges: list[Edge] = []
        raw_edges = raw.get("edges")
        for item in raw_edges if isinstance(raw_edges, list) else []:
            if not isinstance(item, dict):
                logger.warning("skipping non-object edge entry: %r", item)
                continue
            edges.append(Edge.from_wire(item))
        return cls(nodes=nodes, edges=edges)
