"""
Mermaid Serializer

Writes a DiagramGraph as Mermaid flowchart, sequenceDiagram or
classDiagram text. Node ids are made Mermaid-safe (and unique), edges
whose endpoints are missing from the graph are dropped.
"""

import re
from typing import Dict, List, Set, Union

from interchange.diagram_graph import DiagramEdge, DiagramGraph, DiagramNode
from interchange.taxonomy import (
    DiagramType, Direction, NodeKind, Shape,
    detect_relation_kind, mermaid_arrow, mermaid_brackets,
    mermaid_relation, mermaid_sequence_arrow,
)

MERMAID_RESERVED = {
    'end', 'graph', 'flowchart', 'subgraph', 'direction',
    'click', 'style', 'classdef', 'class',
}

# Characters that end a bracketed label early unless the label is quoted.
_NEEDS_QUOTES_RE = re.compile(r'[()\[\]{}<>|"#;:&]')


def sanitize_id(node_id: str) -> str:
    """Reduce an arbitrary cell id to a Mermaid identifier."""
    safe = re.sub(r'\s+', '_', node_id.strip())
    safe = re.sub(r'[^\w]', '', safe)
    if not safe:
        return 'node'
    if safe[0].isdigit():
        safe = f"n_{safe}"
    if safe.lower() in MERMAID_RESERVED:
        safe = f"{safe}_node"
    return safe


def build_id_map(graph: DiagramGraph) -> Dict[str, str]:
    """Map every node id of the graph to a unique Mermaid-safe id."""
    used_ids: Set[str] = set()
    id_map: Dict[str, str] = {}
    for node_id in graph.nodes:
        base_id = sanitize_id(node_id)
        final_id = base_id
        counter = 1
        while final_id in used_ids:
            final_id = f"{base_id}_{counter}"
            counter += 1
        used_ids.add(final_id)
        id_map[node_id] = final_id
    return id_map


def format_label(text: str) -> str:
    """Render label text for use inside node brackets or an edge |label|."""
    lines = text.split('\n')
    if _NEEDS_QUOTES_RE.search(''.join(lines)):
        return '"' + '<br/>'.join(line.replace('"', '#quot;') for line in lines) + '"'
    return '<br/>'.join(lines)


def _node_text(node: DiagramNode) -> str:
    if node.kind == NodeKind.CLASS and node.members:
        return '\n'.join([node.label] + node.members)
    return node.label or node.id


# ──────────────────────────────────────────────────────────────────
# Flowchart
# ──────────────────────────────────────────────────────────────────

def _format_node(node: DiagramNode, node_id: str) -> str:
    open_bracket, close_bracket = mermaid_brackets(node.shape)
    return f"{node_id}{open_bracket}{format_label(_node_text(node))}{close_bracket}"


def _format_edge(edge: DiagramEdge, source_id: str, target_id: str) -> str:
    arrow = mermaid_arrow(edge.style_kind, edge.arrow_end)
    if edge.label:
        return f"{source_id} {arrow}|{format_label(edge.label)}| {target_id}"
    return f"{source_id} {arrow} {target_id}"


def _generate_flowchart(graph: DiagramGraph, direction: Direction) -> List[str]:
    id_map = build_id_map(graph)
    lines = [f"flowchart {direction.value}"]
    for node in graph.nodes.values():
        lines.append(f"    {_format_node(node, id_map[node.id])}")
    for edge in graph.valid_edges():
        lines.append(f"    {_format_edge(edge, id_map[edge.source], id_map[edge.target])}")
    return lines


# ──────────────────────────────────────────────────────────────────
# Sequence
# ──────────────────────────────────────────────────────────────────

def _single_line(text: str) -> str:
    return ' '.join(text.split())


def _generate_sequence(graph: DiagramGraph) -> List[str]:
    id_map = build_id_map(graph)
    lines = ["sequenceDiagram"]
    for node in graph.nodes.values():
        keyword = 'actor' if node.shape == Shape.CIRCLE else 'participant'
        node_id = id_map[node.id]
        label = _single_line(node.label)
        if label and label != node_id:
            lines.append(f"    {keyword} {node_id} as {label}")
        else:
            lines.append(f"    {keyword} {node_id}")
    for edge in graph.valid_edges():
        arrow = mermaid_sequence_arrow(edge.style_kind)
        label = _single_line(edge.label) or 'message'
        lines.append(f"    {id_map[edge.source]}{arrow}{id_map[edge.target]}: {label}")
    return lines


# ──────────────────────────────────────────────────────────────────
# Class
# ──────────────────────────────────────────────────────────────────

def _generate_class(graph: DiagramGraph) -> List[str]:
    id_map = build_id_map(graph)
    lines = ["classDiagram"]
    for node in graph.nodes.values():
        node_id = id_map[node.id]
        label = _single_line(node.label)
        header = f"    class {node_id}"
        if label and label != node_id:
            header += f'["{label.replace(chr(34), chr(39))}"]'
        if node.members:
            lines.append(header + " {")
            lines.extend(f"        {_single_line(member)}" for member in node.members)
            lines.append("    }")
        else:
            lines.append(header)
    for edge in graph.valid_edges():
        kind = edge.relation_kind or detect_relation_kind(edge.style)
        line = f"    {id_map[edge.source]} {mermaid_relation(kind)} {id_map[edge.target]}"
        if edge.label:
            line += f" : {_single_line(edge.label)}"
        lines.append(line)
    return lines


# ──────────────────────────────────────────────────────────────────
# Public API
# ──────────────────────────────────────────────────────────────────

def generate_mermaid(graph: DiagramGraph,
                     diagram_type: Union[DiagramType, str] = DiagramType.FLOWCHART,
                     direction: Union[Direction, str] = Direction.TD) -> str:
    """Serialize a DiagramGraph as Mermaid text of the requested diagram type."""
    diagram_type = DiagramType(diagram_type)
    if diagram_type == DiagramType.SEQUENCE:
        lines = _generate_sequence(graph)
    elif diagram_type == DiagramType.CLASS:
        lines = _generate_class(graph)
    else:
        lines = _generate_flowchart(graph, Direction(direction))
    return '\n'.join(lines) + '\n'


def wrap_markdown(code: str) -> str:
    """Wrap Mermaid text in a fenced ```mermaid block for Markdown export."""
    return f"```mermaid\n{code.strip()}\n```\n"
