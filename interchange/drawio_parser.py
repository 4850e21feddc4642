"""
Draw.io Parser

Parses Draw.io XML documents into a DiagramGraph with:
- Multi-page support (page enumeration without a full parse)
- Compressed page payloads (base64 + raw deflate + percent-encoding)
- UserObject / object wrapped cells
- Group merging: a visible container and its child cells collapse into
  one class-like node with a member list
- Edge labels held in separate label cells, folded into the owning edge
"""

import base64
import html
import re
import sys
import urllib.parse
import zlib
import gzip
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set
from xml.etree import ElementTree as ET

from interchange.diagram_graph import DiagramGraph, DiagramNode, Geometry
from interchange.errors import DecodeError, EmptyInputError, NoNodesError, StructuralParseError
from interchange.taxonomy import (
    NodeKind, Shape, detect_shape, detect_style_kind, has_end_arrow,
)

DEFAULT_CELL_WIDTH = 100.0
DEFAULT_CELL_HEIGHT = 60.0

_ROOT_PARENTS = ('0', '1')
_WRAPPER_TAGS = ('UserObject', 'object')


@dataclass
class PageInfo:
    id: str
    name: str
    index: int


@dataclass
class DrawioParseResult:
    graph: DiagramGraph
    node_map: Dict[str, DiagramNode]
    page_index: int = 0
    page_count: int = 1


# ──────────────────────────────────────────────────────────────────
# Label cleaning
# ──────────────────────────────────────────────────────────────────

_BLOCK_BREAK_RE = re.compile(r'<br\s*/?>|<(?:div|p)\b[^>]*>', re.IGNORECASE)
_BLOCK_CLOSE_RE = re.compile(r'</(?:div|p)\s*>', re.IGNORECASE)
_TAG_RE = re.compile(r'<[^>]+>')


def clean_label(value: Optional[str]) -> str:
    """Reduce an HTML cell value to plain text, keeping explicit line breaks."""
    if not value:
        return ""
    value = _BLOCK_BREAK_RE.sub('\n', value)
    value = _BLOCK_CLOSE_RE.sub('', value)
    value = value.replace('&nbsp;', ' ')
    value = _TAG_RE.sub('', value)
    value = html.unescape(value)
    lines = (' '.join(line.split()) for line in value.split('\n'))
    value = '\n'.join(line for line in lines if line)
    # Characters that would break Mermaid node syntax
    value = value.replace('"', "'").replace('[', '(').replace(']', ')')
    return value


# ──────────────────────────────────────────────────────────────────
# Compression / page extraction
# ──────────────────────────────────────────────────────────────────

_INFLATE_METHODS = [
    lambda d: zlib.decompress(d, -zlib.MAX_WBITS),
    lambda d: zlib.decompress(d),
    lambda d: gzip.decompress(d),
]


def decode_diagram_data(data: str) -> str:
    """
    Recover the XML of a compressed page payload.

    Draw.io stores pages as base64(raw-deflate(percent-encode(xml))). When
    inflating fails the base64-decoded text is returned as-is; when even
    base64 decoding fails a DecodeError is raised.
    """
    compact = re.sub(r'\s+', '', data or '')
    if not compact:
        raise DecodeError('Empty diagram payload')
    try:
        raw = base64.b64decode(compact, validate=True)
    except ValueError as e:
        raise DecodeError(f'Could not decode Draw.io page payload: {e}') from e

    for method in _INFLATE_METHODS:
        try:
            inflated = method(raw).decode('utf-8')
        except (zlib.error, OSError, EOFError, UnicodeDecodeError):
            continue
        return urllib.parse.unquote(inflated)

    try:
        return raw.decode('utf-8')
    except UnicodeDecodeError as e:
        raise DecodeError(f'Could not decode Draw.io page payload: {e}') from e


def _strip_bom(content: str) -> str:
    content = (content or '').strip()
    if content.startswith('\ufeff'):
        content = content[1:].strip()
    return content


def _parse_xml(content: str) -> ET.Element:
    try:
        return ET.fromstring(content)
    except ET.ParseError as e:
        raise StructuralParseError(f'Invalid XML: {e}') from e


def list_pages(content: str) -> List[PageInfo]:
    """List the pages of a Draw.io document without parsing their cells."""
    content = _strip_bom(content)
    if '<mxfile' not in content:
        return [PageInfo(id='0', name='Page 1', index=0)]

    diagrams = _parse_xml(content).findall('.//diagram')
    if not diagrams:
        return [PageInfo(id='0', name='Page 1', index=0)]

    return [
        PageInfo(
            id=diagram.get('id') or str(index),
            name=diagram.get('name') or f'Page {index + 1}',
            index=index,
        )
        for index, diagram in enumerate(diagrams)
    ]


def _page_graph_model(diagram: ET.Element) -> ET.Element:
    """Return the graph model element of one <diagram> page."""
    model = diagram.find('.//mxGraphModel')
    if model is not None:
        return model
    text = (diagram.text or '').strip()
    if not text:
        return ET.Element('mxGraphModel')
    if not text.startswith('<'):
        text = decode_diagram_data(text).strip()
    return _parse_xml(text)


def _select_page(content: str, page_index: int):
    """Return (graph model root, effective page index, page count)."""
    if '<mxfile' not in content:
        return _parse_xml(content), 0, 1

    root = _parse_xml(content)
    diagrams = root.findall('.//diagram')
    if not diagrams:
        return root, 0, 1

    if page_index < 0 or page_index >= len(diagrams):
        print(f"  Warning: Page index {page_index} out of range "
              f"(found {len(diagrams)} pages)", file=sys.stderr)
        page_index = 0
    return _page_graph_model(diagrams[page_index]), page_index, len(diagrams)


# ──────────────────────────────────────────────────────────────────
# Cell normalization
# ──────────────────────────────────────────────────────────────────

@dataclass
class _Cell:
    index: int
    id: str
    value: str
    style: str
    vertex: bool
    edge: bool
    parent: Optional[str]
    source: Optional[str]
    target: Optional[str]
    connectable: bool
    geometry: Geometry


def _float_attr(element: Optional[ET.Element], name: str, default: float) -> float:
    if element is None:
        return default
    try:
        value = float(element.get(name, ''))
    except ValueError:
        return default
    return value or default


def _read_geometry(element: Optional[ET.Element]) -> Geometry:
    return Geometry(
        x=_float_attr(element, 'x', 0.0),
        y=_float_attr(element, 'y', 0.0),
        width=_float_attr(element, 'width', DEFAULT_CELL_WIDTH),
        height=_float_attr(element, 'height', DEFAULT_CELL_HEIGHT),
    )


def _normalize_cells(root: ET.Element) -> List[_Cell]:
    """Flatten mxCell and wrapped UserObject/object cells into _Cell records."""
    cells: List[_Cell] = []
    wrapped: Set[ET.Element] = set()

    for element in root.iter():
        if element.tag in _WRAPPER_TAGS:
            inner = element.find('mxCell')
            if inner is not None:
                wrapped.add(inner)
        elif element.tag != 'mxCell' or element in wrapped:
            continue

        inner = element.find('mxCell') if element.tag in _WRAPPER_TAGS else None

        def attr(name: str) -> Optional[str]:
            value = element.get(name)
            if value is None and inner is not None:
                value = inner.get(name)
            return value

        cell_id = element.get('id')
        if not cell_id:
            continue

        geometry_el = element.find('mxGeometry')
        if geometry_el is None and inner is not None:
            geometry_el = inner.find('mxGeometry')

        cells.append(_Cell(
            index=len(cells),
            id=cell_id,
            value=element.get('value') or element.get('label') or '',
            style=attr('style') or '',
            vertex=attr('vertex') == '1',
            edge=attr('edge') == '1',
            parent=attr('parent'),
            source=attr('source'),
            target=attr('target'),
            connectable=attr('connectable') != '0',
            geometry=_read_geometry(geometry_el),
        ))
    return cells


# ──────────────────────────────────────────────────────────────────
# Graph extraction
# ──────────────────────────────────────────────────────────────────

@dataclass
class _MergedGroup:
    title: str
    members: List[str]
    children: List[str] = field(default_factory=list)


def _merge_groups(cells: List[_Cell],
                  children_of: Dict[str, List[_Cell]]) -> Dict[str, _MergedGroup]:
    """Collapse visible, non-swimlane containers into class-like groups."""
    merged: Dict[str, _MergedGroup] = {}
    for cell in cells:
        children = children_of.get(cell.id)
        if not children or not cell.vertex or 'swimlane' in cell.style:
            continue

        members_cells = sorted((c for c in children if c.vertex), key=lambda c: c.geometry.y)
        members = [text for text in (clean_label(c.value) for c in members_cells) if text]
        title = clean_label(cell.value)
        if not title and members:
            title = members.pop(0)
        if members:
            merged[cell.id] = _MergedGroup(
                title=title,
                members=members,
                children=[c.id for c in members_cells],
            )
    return merged


def _is_edge_label(cell: _Cell, by_id: Dict[str, _Cell]) -> bool:
    owner = by_id.get(cell.parent or '')
    return cell.vertex and not cell.connectable and owner is not None and owner.edge


def extract_graph(root: ET.Element) -> DiagramGraph:
    """Build a DiagramGraph from the cells of one graph model."""
    cells = _normalize_cells(root)
    by_id: Dict[str, _Cell] = {}
    children_of: Dict[str, List[_Cell]] = {}

    # Index everything first so a child may precede its parent in the document.
    for cell in cells:
        by_id[cell.id] = cell
        if cell.parent and cell.parent not in _ROOT_PARENTS:
            children_of.setdefault(cell.parent, []).append(cell)

    merged = _merge_groups(cells, children_of)
    consumed: Set[str] = set()
    for group in merged.values():
        consumed.update(group.children)

    graph = DiagramGraph()
    edge_labels: Dict[str, List[str]] = {}

    for cell in cells:
        # A group nested in another group is already one of its members.
        if cell.id in consumed:
            continue
        if cell.id in merged:
            group = merged[cell.id]
            graph.add_node(
                cell.id, group.title, Shape.CLASS,
                kind=NodeKind.CLASS,
                members=list(group.members),
                geometry=cell.geometry,
                style=cell.style,
            )
        elif _is_edge_label(cell, by_id):
            text = clean_label(cell.value)
            if text:
                edge_labels.setdefault(cell.parent, []).append(text)
        elif cell.vertex and cell.parent != '0':
            graph.add_node(
                cell.id, clean_label(cell.value), detect_shape(cell.style),
                geometry=cell.geometry,
                style=cell.style,
            )
        elif cell.edge or (cell.source and cell.target):
            graph.add_edge(
                cell.source or '', cell.target or '', clean_label(cell.value),
                edge_id=cell.id,
                style_kind=detect_style_kind(cell.style),
                arrow_end=has_end_arrow(cell.style),
                style=cell.style,
            )

    # Label cells are folded in document order, whatever side of the edge they sit on.
    for edge in graph.edges:
        parts = [edge.label] + edge_labels.get(edge.id, [])
        edge.label = ' '.join(p for p in parts if p)

    for cell in cells:
        children = children_of.get(cell.id)
        if children and cell.vertex and cell.id not in merged:
            graph.add_subgraph(
                cell.id,
                clean_label(cell.value),
                [c.id for c in children if c.id in graph.nodes],
            )
    return graph


# ──────────────────────────────────────────────────────────────────
# Public API
# ──────────────────────────────────────────────────────────────────

def parse_drawio(content: str, page_index: int = 0) -> DrawioParseResult:
    """Parse a Draw.io document (one page of it) into a DiagramGraph."""
    content = _strip_bom(content)
    if not content:
        raise EmptyInputError('Draw.io document is empty')

    root, page_index, page_count = _select_page(content, page_index)
    graph = extract_graph(root)
    if not graph.nodes:
        raise NoNodesError('No nodes found in the Draw.io diagram')

    return DrawioParseResult(
        graph=graph,
        node_map=graph.nodes,
        page_index=page_index,
        page_count=page_count,
    )
