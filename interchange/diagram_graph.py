"""
Diagram Graph: shared intermediate model for both diagram formats.

Both parsers build a DiagramGraph and both serializers read one. A graph
is owned by a single conversion: it is filled during parsing (nodes and
edges are append-only, edge labels may be extended), receives geometry
from the layout engine, and is read-only during serialization.
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from interchange.taxonomy import NodeKind, RelationKind, Shape, StyleKind

GRAPH_SCHEMA_VERSION = "1.0.0"


# ──────────────────────────────────────────────────────────────────
# Dataclasses
# ──────────────────────────────────────────────────────────────────

@dataclass
class Geometry:
    x: float
    y: float
    width: float
    height: float

    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass
class DiagramNode:
    id: str
    label: str
    shape: Shape = Shape.RECTANGLE
    kind: NodeKind = NodeKind.NODE
    members: List[str] = field(default_factory=list)
    geometry: Optional[Geometry] = None
    style: str = ""


@dataclass
class DiagramEdge:
    id: str
    source: str
    target: str
    label: str = ""
    style_kind: StyleKind = StyleKind.PLAIN
    relation_kind: Optional[RelationKind] = None
    arrow_end: bool = True
    style: str = ""


@dataclass
class DiagramSubgraph:
    id: str
    label: str
    nodes: List[str] = field(default_factory=list)


class DiagramGraph:
    """Nodes keyed by id (insertion ordered), plus ordered edges and subgraphs."""

    def __init__(self) -> None:
        self.nodes: Dict[str, DiagramNode] = {}
        self.edges: List[DiagramEdge] = []
        self.subgraphs: List[DiagramSubgraph] = []
        self._explicit_labels: Set[str] = set()

    def __repr__(self) -> str:
        return (f"DiagramGraph(nodes={len(self.nodes)}, edges={len(self.edges)}, "
                f"subgraphs={len(self.subgraphs)})")

    def add_node(self, node_id: str, label: Optional[str] = None,
                 shape: Optional[Shape] = None, **attrs: Any) -> DiagramNode:
        """Register a node, or return the existing one.

        A node registered without a label shows its id. The first call that
        supplies a label fixes label and shape; later labels are ignored.
        """
        node = self.nodes.get(node_id)
        if node is None:
            node = DiagramNode(
                id=node_id,
                label=node_id if label is None else label,
                shape=shape or Shape.RECTANGLE,
                **attrs,
            )
            self.nodes[node_id] = node
            if label is not None:
                self._explicit_labels.add(node_id)
            return node

        if label is not None and node_id not in self._explicit_labels:
            node.label = label
            if shape is not None:
                node.shape = shape
            self._explicit_labels.add(node_id)
        return node

    def add_edge(self, source: str, target: str, label: str = "",
                 edge_id: Optional[str] = None, **attrs: Any) -> DiagramEdge:
        """Append an edge. Endpoints are not checked until serialization."""
        edge = DiagramEdge(
            id=edge_id or f"edge_{len(self.edges)}",
            source=source,
            target=target,
            label=label,
            **attrs,
        )
        self.edges.append(edge)
        return edge

    def add_subgraph(self, subgraph_id: str, label: str,
                     nodes: Optional[List[str]] = None) -> DiagramSubgraph:
        subgraph = DiagramSubgraph(id=subgraph_id, label=label, nodes=list(nodes or []))
        self.subgraphs.append(subgraph)
        return subgraph

    def get_node(self, node_id: str) -> Optional[DiagramNode]:
        return self.nodes.get(node_id)

    def valid_edges(self) -> List[DiagramEdge]:
        """Edges whose source and target both resolve to nodes of this graph."""
        return [e for e in self.edges
                if e.source in self.nodes and e.target in self.nodes]


# ──────────────────────────────────────────────────────────────────
# JSON Serialization
# ──────────────────────────────────────────────────────────────────

def to_json(graph: DiagramGraph) -> dict:
    """Serialize a DiagramGraph to a JSON-compatible dict."""
    return {
        'schema_version': GRAPH_SCHEMA_VERSION,
        'nodes': [asdict(n) for n in graph.nodes.values()],
        'edges': [asdict(e) for e in graph.edges],
        'subgraphs': [asdict(s) for s in graph.subgraphs],
    }


def from_json(data: dict) -> DiagramGraph:
    """Deserialize a dict (from JSON) into a DiagramGraph."""
    graph = DiagramGraph()
    for n in data.get('nodes', []):
        geometry = n.get('geometry')
        node = DiagramNode(
            id=n['id'],
            label=n.get('label', n['id']),
            shape=Shape(n.get('shape', Shape.RECTANGLE.value)),
            kind=NodeKind(n.get('kind', NodeKind.NODE.value)),
            members=list(n.get('members', [])),
            geometry=Geometry(**geometry) if geometry else None,
            style=n.get('style', ''),
        )
        graph.nodes[node.id] = node
    for e in data.get('edges', []):
        relation = e.get('relation_kind')
        graph.edges.append(DiagramEdge(
            id=e['id'],
            source=e['source'],
            target=e['target'],
            label=e.get('label', ''),
            style_kind=StyleKind(e.get('style_kind', StyleKind.PLAIN.value)),
            relation_kind=RelationKind(relation) if relation else None,
            arrow_end=e.get('arrow_end', True),
            style=e.get('style', ''),
        ))
    for s in data.get('subgraphs', []):
        graph.subgraphs.append(DiagramSubgraph(
            id=s['id'], label=s.get('label', s['id']), nodes=list(s.get('nodes', [])),
        ))
    return graph


def save_graph(graph: DiagramGraph, path: str) -> None:
    """Write a DiagramGraph to a .graph.json file."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, 'w', encoding='utf-8') as f:
        json.dump(to_json(graph), f, indent=2, default=str)


def load_graph(path: str) -> DiagramGraph:
    """Read a .graph.json file and return a DiagramGraph."""
    with open(path, 'r', encoding='utf-8') as f:
        return from_json(json.load(f))
