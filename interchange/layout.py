"""
Layout Engine

Layered placement for graphs that arrive without coordinates (the Mermaid
direction). Nodes are layered breadth-first from the in-degree-0 roots,
each layer is centred as a row, and rows are stacked top to bottom.
"""

from collections import deque
from typing import Dict, List

from interchange.diagram_graph import DiagramGraph, Geometry

NODE_WIDTH = 120
NODE_HEIGHT = 60
H_SPACING = 180
V_SPACING = 120
ORIGIN_X = 50
ORIGIN_Y = 50
CENTER_OFFSET = 300


def assign_layers(graph: DiagramGraph) -> List[List[str]]:
    """Return node ids grouped by BFS depth, in insertion order within a layer."""
    if not graph.nodes:
        return []

    adjacency: Dict[str, List[str]] = {node_id: [] for node_id in graph.nodes}
    in_degree: Dict[str, int] = {node_id: 0 for node_id in graph.nodes}
    for edge in graph.valid_edges():
        adjacency[edge.source].append(edge.target)
        in_degree[edge.target] += 1

    roots = [node_id for node_id in graph.nodes if in_degree[node_id] == 0]
    if not roots:
        roots = [next(iter(graph.nodes))]

    visited = set(roots)
    layers: List[List[str]] = [roots]
    queue = deque([roots])
    while queue:
        current = queue.popleft()
        next_layer: List[str] = []
        for node_id in current:
            for successor in adjacency[node_id]:
                if successor not in visited:
                    visited.add(successor)
                    next_layer.append(successor)
        if next_layer:
            layers.append(next_layer)
            queue.append(next_layer)

    # Cycles without an entry point are never reached from the roots.
    unreached = [node_id for node_id in graph.nodes if node_id not in visited]
    layers[-1].extend(unreached)
    return layers


def layout_graph(graph: DiagramGraph) -> DiagramGraph:
    """Give every node without usable geometry a position. Mutates and returns graph."""
    layers = assign_layers(graph)

    positions: Dict[str, List[float]] = {}
    for depth, layer in enumerate(layers):
        row_start = -len(layer) * H_SPACING / 2 + H_SPACING / 2
        y = ORIGIN_Y + depth * V_SPACING
        for i, node_id in enumerate(layer):
            x = ORIGIN_X + CENTER_OFFSET + row_start + i * H_SPACING
            positions[node_id] = [x, y]

    if positions:
        min_x = min(x for x, _ in positions.values())
        if min_x <= 0:
            shift = ORIGIN_X - min_x
            for position in positions.values():
                position[0] += shift

    for node_id, (x, y) in positions.items():
        node = graph.nodes[node_id]
        if node.geometry is None or node.geometry.is_degenerate():
            node.geometry = Geometry(x=x, y=y, width=NODE_WIDTH, height=NODE_HEIGHT)
    return graph
