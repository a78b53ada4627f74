"""Editor graph <-> canonical pathway.

The editor graph is what the canvas holds: the same node/edge identity plus
interaction state (selection, measured size, drag flags) and edge styling.
The canonical pathway keeps identity and semantics only.
"""

from __future__ import annotations

import logging
from typing import Any

from .types import DEFAULT_LABEL, Edge, Node, Pathway, Position, edge_id

logger = logging.getLogger(__name__)

EDITOR_COLUMN_X = 250.0
EDITOR_ROW_HEIGHT = 100.0
EDITOR_EDGE_TYPE = "custom"
EDITOR_EDGE_STYLE = {"stroke": "#3b82f6", "strokeWidth": 2}


def _edge_label(raw: dict[str, Any]) -> str:
    data = raw.get("data") if isinstance(raw.get("data"), dict) else {}
    label = raw.get("label") or data.get("label")
    return str(label) if label else DEFAULT_LABEL


def to_canonical(editor: dict[str, Any]) -> Pathway:
    nodes: list[Node] = []
    raw_nodes = editor.get("nodes")
    for raw in raw_nodes if isinstance(raw_nodes, list) else []:
        if not isinstance(raw, dict):
            continue
        data = raw.get("data") if isinstance(raw.get("data"), dict) else {}
        nodes.append(
            Node(
                id=str(raw.get("id", "")),
                kind=str(raw.get("type") or "Default"),
                payload=dict(data),
                position=Position.from_wire(raw.get("position")),
            )
        )

    ids = {n.id for n in nodes}
    edges: list[Edge] = []
    taken: set[str] = set()
    raw_edges = editor.get("edges")
    for raw in raw_edges if isinstance(raw_edges, list) else []:
        if not isinstance(raw, dict):
            continue
        source = str(raw.get("source", ""))
        target = str(raw.get("target", ""))
        if source not in ids or target not in ids:
            logger.warning("dropping edge %s: %s -> %s does not resolve", raw.get("id"), source, target)
            continue
        eid = edge_id(source, target, taken)
        taken.add(eid)
        extra = raw.get("data") if isinstance(raw.get("data"), dict) else {}
        extra = {k: v for k, v in extra.items() if k != "label"}
        edges.append(Edge(id=eid, source=source, target=target, label=_edge_label(raw), data=extra or None))

    logger.debug("editor -> canonical: %d nodes, %d edges", len(nodes), len(edges))
    return Pathway(nodes=nodes, edges=edges)


def canonicalize(pathway: Pathway) -> Pathway:
    """Same pathway with deterministic edge ids and default labels filled.

    Edges with an unresolved end are dropped.
    """
    ids = pathway.node_ids()
    taken: set[str] = set()
    edges = []
    for e in pathway.edges:
        if e.source not in ids or e.target not in ids:
            logger.warning("dropping edge %s: %s -> %s does not resolve", e.id, e.source, e.target)
            continue
        eid = edge_id(e.source, e.target, taken)
        taken.add(eid)
        edges.append(Edge(id=eid, source=e.source, target=e.target, label=e.label or DEFAULT_LABEL, data=e.data))
    return Pathway(nodes=list(pathway.nodes), edges=edges)


def to_editor(pathway: Pathway) -> dict[str, Any]:
    dangling = pathway.dangling_edges()
    nodes = []
    for i, n in enumerate(pathway.nodes):
        pos = n.position or Position(x=EDITOR_COLUMN_X, y=i * EDITOR_ROW_HEIGHT)
        nodes.append(
            {
                "id": n.id,
                "type": n.kind,
                "position": pos.to_wire(),
                "data": dict(n.payload),
                "selected": False,
            }
        )

    edges = []
    for e in pathway.edges:
        if e in dangling:
            logger.warning("dropping edge %s: %s -> %s does not resolve", e.id, e.source, e.target)
            continue
        label = e.label or DEFAULT_LABEL
        edges.append(
            {
                "id": e.id,
                "source": e.source,
                "target": e.target,
                "type": EDITOR_EDGE_TYPE,
                "label": label,
                "animated": True,
                "data": {**(e.data or {}), "label": label},
                "style": dict(EDITOR_EDGE_STYLE),
            }
        )

    logger.debug("canonical -> editor: %d nodes, %d edges", len(nodes), len(edges))
    return {"nodes": nodes, "edges": edges}
