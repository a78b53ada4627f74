"""Turn implicit yes/no questions into explicit two-branch structures.

For every question the classifier marks as a binary choice, in node order:

- the question points at a customer-response node: that node gets Yes/No
  options, a variableName and its own Yes/No edges;
- the question points at an informational (response) node: a new
  customer-response node is spliced in its place, inheriting its first
  outgoing edge as Yes, and the informational node is removed;
- the question points at anything else: its own edges carry the branch;
- the question has no outgoing edges: left alone.

In every case the question ends with exactly one Yes and one No edge, and
No falls back to a terminal node, found or created once per pass.

The engine never raises on odd input. A node whose repair hits an unexpected
data shape is logged, listed in ``report.skipped`` and whatever was already
done to it stays in place.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import asdict, dataclass, field
from typing import Any

from .classify import is_binary_choice, variable_name_for
from .types import DEFAULT_LABEL, NO, YES, Edge, Node, Pathway, Position, canonical_kind, edge_id

logger = logging.getLogger(__name__)

FAREWELL_KEYWORDS = ("thank", "goodbye", "great day")
TERMINAL_TEXT = "Thank you for your time. Have a great day!"
CUSTOMER_RESPONSE_TEXT = "Waiting for customer response"


@dataclass
class RepairReport:
    modified_nodes: list[str] = field(default_factory=list)
    created_nodes: list[str] = field(default_factory=list)
    removed_nodes: list[str] = field(default_factory=list)
    created_edges: list[str] = field(default_factory=list)
    removed_edges: list[str] = field(default_factory=list)
    relabeled_edges: list[str] = field(default_factory=list)
    rewired_edges: list[str] = field(default_factory=list)
    decisions: dict[str, str] = field(default_factory=dict)  # question id -> case
    skipped: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return any(
            (
                self.modified_nodes,
                self.created_nodes,
                self.removed_nodes,
                self.created_edges,
                self.removed_edges,
                self.relabeled_edges,
                self.rewired_edges,
            )
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Normalized:
    pathway: Pathway
    report: RepairReport


def _note(items: list[str], item: str) -> None:
    if item not in items:
        items.append(item)


def is_terminal(pathway: Pathway, node: Node) -> bool:
    if canonical_kind(node.kind) == "end-call":
        return True
    text = node.text.lower()
    return any(kw in text for kw in FAREWELL_KEYWORDS) and not pathway.outgoing(node.id)


class _Repairer:
    def __init__(self, pathway: Pathway) -> None:
        self.p = pathway
        self.report = RepairReport()
        self._counter = 0

    # ---- primitives ----

    def new_node_id(self, prefix: str) -> str:
        ids = self.p.node_ids()
        while True:
            self._counter += 1
            nid = f"{prefix}_{self._counter}"
            if nid not in ids:
                return nid

    def add_edge(self, source: str, target: str, label: str) -> Edge:
        e = Edge(id=edge_id(source, target, self.p.edge_ids()), source=source, target=target, label=label)
        self.p.edges.append(e)
        _note(self.report.created_edges, e.id)
        logger.debug("added %s edge %s", label, e.id)
        return e

    def relabel(self, edge: Edge, label: str) -> None:
        if edge.label == label:
            return
        logger.debug("relabel %s: %r -> %r", edge.id, edge.label, label)
        edge.label = label
        _note(self.report.relabeled_edges, edge.id)

    def rewire(self, edge: Edge, *, source: str | None = None, target: str | None = None) -> None:
        edge.source = source or edge.source
        edge.target = target or edge.target
        taken = {e.id for e in self.p.edges if e is not edge}
        edge.id = edge_id(edge.source, edge.target, taken)
        _note(self.report.rewired_edges, edge.id)

    def remove_node(self, node_id: str) -> None:
        self.p.nodes = [n for n in self.p.nodes if n.id != node_id]
        kept: list[Edge] = []
        for e in self.p.edges:
            if e.source == node_id or e.target == node_id:
                _note(self.report.removed_edges, e.id)
            else:
                kept.append(e)
        self.p.edges = kept
        _note(self.report.removed_nodes, node_id)

    def prune_dangling(self) -> None:
        dangling = self.p.dangling_edges()
        if not dangling:
            return
        drop = {id(e) for e in dangling}
        for e in dangling:
            logger.warning("dropping edge %s: %s -> %s does not resolve", e.id, e.source, e.target)
            _note(self.report.removed_edges, e.id)
        self.p.edges = [e for e in self.p.edges if id(e) not in drop]

    # ---- lookups ----

    def next_in_order(self, node_id: str) -> Node | None:
        idx = self.p.index_of(node_id)
        if 0 <= idx < len(self.p.nodes) - 1:
            return self.p.nodes[idx + 1]
        return None

    def terminal(self, anchor: Node) -> Node:
        for n in self.p.nodes:
            if n.id != anchor.id and canonical_kind(n.kind) == "end-call":
                return n
        for n in self.p.nodes:
            if n.id != anchor.id and is_terminal(self.p, n):
                return n

        if anchor.position is not None:
            pos = Position(x=anchor.position.x + 200, y=anchor.position.y)
        else:
            pos = Position(x=450, y=300)
        node = Node(
            id=self.new_node_id("end_call"),
            kind="end-call",
            payload={"text": TERMINAL_TEXT},
            position=pos,
        )
        self.p.nodes.append(node)
        _note(self.report.created_nodes, node.id)
        logger.debug("created terminal %s", node.id)
        return node

    # ---- repairs ----

    def _dedupe(self, node_id: str, label: str) -> None:
        seen = False
        for e in self.p.outgoing(node_id):
            if e.label != label:
                continue
            if seen:
                self.relabel(e, DEFAULT_LABEL)
            seen = True

    def ensure_branches(self, node: Node, preferred_yes: Edge | None = None) -> None:
        self._dedupe(node.id, YES)
        self._dedupe(node.id, NO)

        out = self.p.outgoing(node.id)
        if not any(e.label == YES for e in out):
            if preferred_yes is not None and preferred_yes.label != NO:
                self.relabel(preferred_yes, YES)
            else:
                defaults = [e for e in out if e.label in (DEFAULT_LABEL, "")]
                onward = [e for e in defaults if not is_terminal(self.p, self.p.node(e.target))]
                others = [e for e in out if e.label != NO]
                nxt = self.next_in_order(node.id)
                if onward:
                    self.relabel(onward[0], YES)
                elif nxt is not None and not is_terminal(self.p, nxt):
                    self.add_edge(node.id, nxt.id, YES)
                elif defaults:
                    # nothing follows but the terminal itself
                    self.relabel(defaults[0], YES)
                elif others:
                    self.relabel(others[0], YES)
                elif nxt is not None:
                    self.add_edge(node.id, nxt.id, YES)
                else:
                    self.add_edge(node.id, self.terminal(node).id, YES)

        out = self.p.outgoing(node.id)
        if not any(e.label == NO for e in out):
            closing = [
                e
                for e in out
                if e.label in (DEFAULT_LABEL, "") and is_terminal(self.p, self.p.node(e.target))
            ]
            if closing:
                self.relabel(closing[0], NO)
            else:
                self.add_edge(node.id, self.terminal(node).id, NO)

    def coerce_customer_response(self, question: Node, node: Node) -> None:
        changed = False
        options = node.payload.get("options")
        if not isinstance(options, list):
            node.payload["options"] = [YES, NO]
            changed = True
        elif YES not in options or NO not in options:
            node.payload["options"] = [YES, NO] + [o for o in options if o not in (YES, NO)]
            changed = True
        if not node.payload.get("variableName"):
            node.payload["variableName"] = variable_name_for(question.text)
            changed = True
        if changed:
            _note(self.report.modified_nodes, node.id)

    def splice(self, question: Node, edge: Edge, info: Node) -> Node:
        """Replace ``info`` with a new customer-response node."""
        pos = copy.deepcopy(info.position) if info.position is not None else Position(x=250, y=200)
        node = Node(
            id=self.new_node_id("customer_response"),
            kind="customer-response",
            payload={
                "text": CUSTOMER_RESPONSE_TEXT,
                "options": [YES, NO],
                "responses": [YES, NO],
                "variableName": variable_name_for(question.text),
                "intentDescription": question.text or "Capture customer response",
            },
            position=pos,
        )
        info_out = self.p.outgoing(info.id)
        self.p.nodes.insert(self.p.index_of(info.id), node)
        _note(self.report.created_nodes, node.id)

        self.rewire(edge, target=node.id)
        if info_out:
            onward = info_out[0]
            self.rewire(onward, source=node.id)
            self.relabel(onward, YES)
        self.remove_node(info.id)
        logger.debug("spliced %s in place of %s after %s", node.id, info.id, question.id)
        return node

    def repair(self, question: Node) -> None:
        out = self.p.outgoing(question.id)
        if not out:
            self.report.decisions[question.id] = "no-outgoing"
            return

        targets = [(e, self.p.node(e.target)) for e in out]
        for e, target in targets:
            if canonical_kind(target.kind) == "customer-response":
                self.report.decisions[question.id] = "coerced"
                self.coerce_customer_response(question, target)
                self.ensure_branches(target)
                self.ensure_branches(question, preferred_yes=e)
                return
        for e, target in targets:
            if canonical_kind(target.kind) == "response":
                self.report.decisions[question.id] = "spliced"
                node = self.splice(question, e, target)
                self.ensure_branches(node)
                self.ensure_branches(question, preferred_yes=e)
                return

        self.report.decisions[question.id] = "branched"
        self.ensure_branches(question)


def normalize(pathway: Pathway) -> Normalized:
    p = copy.deepcopy(pathway)
    repairer = _Repairer(p)
    repairer.prune_dangling()

    for qid in [n.id for n in p.nodes if is_binary_choice(n)]:
        question = p.node(qid)
        if question is None:
            continue
        try:
            repairer.repair(question)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("left %s partially repaired: %s", qid, exc)
            repairer.report.skipped.append(qid)

    report = repairer.report
    logger.info(
        "normalized pathway: %d questions, %d nodes created, %d removed, %d edges created",
        len(report.decisions),
        len(report.created_nodes),
        len(report.removed_nodes),
        len(report.created_edges),
    )
    return Normalized(pathway=p, report=report)
