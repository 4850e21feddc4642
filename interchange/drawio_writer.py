"""
Draw.io Serializer

Writes a DiagramGraph as a page-wrapped Draw.io document
(mxfile > diagram > mxGraphModel > root). Nodes without geometry are laid
out first; edges with dangling endpoints are dropped.

Class-like nodes become a container cell plus one child text cell per
member, which the Draw.io parser merges back into a single class node.
"""

import base64
import html
import urllib.parse
import zlib
from typing import Dict, Set
from xml.etree import ElementTree as ET

from interchange.diagram_graph import DiagramGraph, DiagramNode, Geometry
from interchange.layout import layout_graph
from interchange.taxonomy import (
    DRAWIO_MEMBER_STYLE, NodeKind, drawio_style_for_edge, drawio_style_for_shape,
)

ROOT_CELL_IDS = ('0', '1')
CLASS_HEADER_HEIGHT = 30
MEMBER_ROW_HEIGHT = 26
MIN_NODE_HEIGHT = 60

# Characters encodeURIComponent leaves alone; draw.io decodes with decodeURIComponent.
_URI_SAFE = "-_.!~*'()"


def encode_diagram_data(xml: str) -> str:
    """Compress page XML the way draw.io stores it: percent-encode, raw deflate, base64."""
    quoted = urllib.parse.quote(xml, safe=_URI_SAFE).encode('utf-8')
    compressor = zlib.compressobj(9, zlib.DEFLATED, -zlib.MAX_WBITS)
    deflated = compressor.compress(quoted) + compressor.flush()
    return base64.b64encode(deflated).decode('ascii')


def _html_value(text: str) -> str:
    """Cell values are HTML (html=1): escape each line, join with <br>."""
    return '<br>'.join(html.escape(line, quote=False) for line in text.split('\n'))


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _add_geometry(cell: ET.Element, geometry: Geometry) -> None:
    ET.SubElement(cell, 'mxGeometry', {
        'x': _fmt(geometry.x),
        'y': _fmt(geometry.y),
        'width': _fmt(geometry.width),
        'height': _fmt(geometry.height),
        'as': 'geometry',
    })


def _assign_cell_ids(graph: DiagramGraph) -> Dict[str, str]:
    used: Set[str] = set(ROOT_CELL_IDS)
    cell_ids: Dict[str, str] = {}
    for node_id in graph.nodes:
        cell_id = node_id if node_id and node_id not in used else f"node_{node_id}"
        counter = 1
        base_id = cell_id
        while cell_id in used:
            cell_id = f"{base_id}_{counter}"
            counter += 1
        used.add(cell_id)
        cell_ids[node_id] = cell_id
    return cell_ids


def _add_class_node(cell_root: ET.Element, node: DiagramNode, cell_id: str) -> None:
    geometry = node.geometry
    height = max(MIN_NODE_HEIGHT, CLASS_HEADER_HEIGHT + MEMBER_ROW_HEIGHT * len(node.members))
    container = ET.SubElement(cell_root, 'mxCell', {
        'id': cell_id,
        'value': _html_value(node.label),
        'style': drawio_style_for_shape(node.shape),
        'vertex': '1',
        'parent': '1',
    })
    _add_geometry(container, Geometry(geometry.x, geometry.y, geometry.width, height))

    for i, member in enumerate(node.members):
        member_cell = ET.SubElement(cell_root, 'mxCell', {
            'id': f"{cell_id}-member-{i}",
            'value': _html_value(member),
            'style': DRAWIO_MEMBER_STYLE,
            'vertex': '1',
            'parent': cell_id,
        })
        _add_geometry(member_cell, Geometry(
            0, CLASS_HEADER_HEIGHT + MEMBER_ROW_HEIGHT * i, geometry.width, MEMBER_ROW_HEIGHT,
        ))


def build_graph_model(graph: DiagramGraph) -> ET.Element:
    """Build the <mxGraphModel> element for a graph."""
    if any(n.geometry is None or n.geometry.is_degenerate() for n in graph.nodes.values()):
        layout_graph(graph)

    model = ET.Element('mxGraphModel')
    cell_root = ET.SubElement(model, 'root')
    ET.SubElement(cell_root, 'mxCell', id='0')
    ET.SubElement(cell_root, 'mxCell', id='1', parent='0')

    cell_ids = _assign_cell_ids(graph)
    for node in graph.nodes.values():
        cell_id = cell_ids[node.id]
        if node.kind == NodeKind.CLASS and node.members:
            _add_class_node(cell_root, node, cell_id)
            continue
        cell = ET.SubElement(cell_root, 'mxCell', {
            'id': cell_id,
            'value': _html_value(node.label),
            'style': drawio_style_for_shape(node.shape),
            'vertex': '1',
            'parent': '1',
        })
        _add_geometry(cell, node.geometry)

    used_ids = set(cell_ids.values()) | set(ROOT_CELL_IDS)
    for i, edge in enumerate(graph.valid_edges()):
        edge_id = edge.id if edge.id and edge.id not in used_ids else f"edge_{i}"
        while edge_id in used_ids:
            edge_id = f"{edge_id}_"
        used_ids.add(edge_id)

        cell = ET.SubElement(cell_root, 'mxCell', {
            'id': edge_id,
            'value': _html_value(edge.label),
            'style': drawio_style_for_edge(edge.style_kind, edge.arrow_end, edge.relation_kind),
            'edge': '1',
            'parent': '1',
            'source': cell_ids[edge.source],
            'target': cell_ids[edge.target],
        })
        ET.SubElement(cell, 'mxGeometry', {'relative': '1', 'as': 'geometry'})
    return model


def generate_drawio(graph: DiagramGraph, compress: bool = False,
                    page_name: str = 'Page-1') -> str:
    """Serialize a DiagramGraph as a single-page Draw.io document."""
    model = build_graph_model(graph)

    root = ET.Element('mxfile', host='interchange')
    diagram = ET.SubElement(root, 'diagram', id='page-1', name=page_name)
    if compress:
        diagram.text = encode_diagram_data(ET.tostring(model, encoding='unicode'))
    else:
        diagram.append(model)

    ET.indent(root)
    return ET.tostring(root, encoding='unicode')
