"""
Conversion pipelines.

    Draw.io -> Mermaid:  parse_drawio -> classify -> generate_mermaid
    Mermaid -> Draw.io:  parse_mermaid -> layout_graph -> generate_drawio

Every call owns its DiagramGraph; nothing is shared between calls. Editor
state that outlives one call (loaded document, selected page) lives on an
explicit ConversionSession.
"""

import sys
import urllib.parse
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from interchange.classifier import classify
from interchange.diagram_graph import DiagramGraph
from interchange.drawio_parser import PageInfo, list_pages, parse_drawio
from interchange.drawio_writer import generate_drawio
from interchange.errors import EmptyInputError, OptionsError
from interchange.layout import layout_graph
from interchange.mermaid_parser import parse_mermaid
from interchange.mermaid_writer import generate_mermaid, wrap_markdown
from interchange.taxonomy import DiagramType, Direction

AUTO_DIAGRAM_TYPE = 'auto'

DIRECTIONS = tuple(d.value for d in Direction)
DIAGRAM_TYPES = tuple(t.value for t in DiagramType) + (AUTO_DIAGRAM_TYPE,)

__all__ = [
    'MermaidOptions', 'MermaidConversion', 'DrawioData', 'ConversionSession',
    'drawio_to_mermaid', 'convert_drawio_to_mermaid', 'convert_mermaid_to_drawio',
    'mermaid_as_drawio_data', 'wrap_markdown',
]


@dataclass
class MermaidOptions:
    """Options of the Draw.io -> Mermaid direction."""
    direction: str = Direction.TD.value
    diagram_type: str = DiagramType.FLOWCHART.value

    def __post_init__(self) -> None:
        self.direction = str(getattr(self.direction, 'value', self.direction)).upper()
        self.diagram_type = str(getattr(self.diagram_type, 'value', self.diagram_type)).lower()
        if self.direction not in DIRECTIONS:
            raise OptionsError(
                f"Unknown direction '{self.direction}' (expected one of {', '.join(DIRECTIONS)})")
        if self.diagram_type not in DIAGRAM_TYPES:
            raise OptionsError(
                f"Unknown diagram type '{self.diagram_type}' "
                f"(expected one of {', '.join(DIAGRAM_TYPES)})")


@dataclass
class MermaidConversion:
    mermaid: str
    diagram_type: DiagramType
    page_index: int = 0
    page_count: int = 1


@dataclass
class DrawioData:
    xml: str
    encoded: str
    data_url: str


def _log_summary(graph: DiagramGraph) -> None:
    print(f"  Extracted: {len(graph.nodes)} nodes, {len(graph.valid_edges())} edges, "
          f"{len(graph.subgraphs)} groups", file=sys.stderr)


# ──────────────────────────────────────────────────────────────────
# Pipelines
# ──────────────────────────────────────────────────────────────────

def drawio_to_mermaid(xml: str, options: Optional[MermaidOptions] = None,
                      page_index: int = 0) -> MermaidConversion:
    """Convert one page of a Draw.io document, reporting the diagram type used."""
    options = options or MermaidOptions()
    result = parse_drawio(xml, page_index)
    _log_summary(result.graph)
    if result.page_count > 1:
        print(f"  Multi-page file: converted page {result.page_index + 1} of {result.page_count}",
              file=sys.stderr)

    if options.diagram_type == AUTO_DIAGRAM_TYPE:
        diagram_type = classify(result.graph)
    else:
        diagram_type = DiagramType(options.diagram_type)

    mermaid = generate_mermaid(result.graph, diagram_type, Direction(options.direction))
    return MermaidConversion(
        mermaid=mermaid,
        diagram_type=diagram_type,
        page_index=result.page_index,
        page_count=result.page_count,
    )


def convert_drawio_to_mermaid(xml: str, options: Optional[MermaidOptions] = None,
                              page_index: int = 0) -> str:
    return drawio_to_mermaid(xml, options, page_index).mermaid


def convert_mermaid_to_drawio(text: str, compress: bool = False) -> str:
    """Convert Mermaid text to a self-contained single-page Draw.io document."""
    result = parse_mermaid(text)
    _log_summary(result.graph)
    layout_graph(result.graph)
    return generate_drawio(result.graph, compress=compress)


def mermaid_as_drawio_data(text: str) -> DrawioData:
    """Draw.io XML for Mermaid text plus its percent-encoded and data-URL forms."""
    xml = convert_mermaid_to_drawio(text)
    encoded = urllib.parse.quote(xml, safe="-_.!~*'()")
    return DrawioData(xml=xml, encoded=encoded, data_url=f"data:text/xml,{encoded}")


# ──────────────────────────────────────────────────────────────────
# Session
# ──────────────────────────────────────────────────────────────────

class ConversionSession:
    """The documents and page selection of one editing session.

    Holds what a browser editor would otherwise keep in globals: the
    current Draw.io XML, the current Mermaid text, the known pages and the
    selected page. Conversions themselves stay stateless.
    """

    def __init__(self, session_id: Optional[str] = None) -> None:
        self.id = session_id or uuid.uuid4().hex
        self.created_at = datetime.now().isoformat()
        self.drawio_xml: Optional[str] = None
        self.mermaid: Optional[str] = None
        self.pages: List[PageInfo] = []
        self.page_index = 0

    def load_drawio(self, xml: str) -> List[PageInfo]:
        """Make xml the current Draw.io document and return its pages."""
        if not xml or not xml.strip():
            raise EmptyInputError('Draw.io document is empty')
        self.pages = list_pages(xml)
        self.drawio_xml = xml
        self.page_index = 0
        return self.pages

    def load_mermaid(self, text: str) -> None:
        if not text or not text.strip():
            raise EmptyInputError('Mermaid code is empty')
        self.mermaid = text

    def select_page(self, index: int) -> PageInfo:
        if self.drawio_xml is None:
            raise EmptyInputError('No Draw.io document loaded')
        if index < 0 or index >= len(self.pages):
            raise OptionsError(f"Page index {index} out of range (found {len(self.pages)} pages)")
        self.page_index = index
        return self.pages[index]

    def to_mermaid(self, options: Optional[MermaidOptions] = None) -> MermaidConversion:
        """Convert the selected page of the current Draw.io document."""
        if self.drawio_xml is None:
            raise EmptyInputError('No Draw.io document loaded')
        conversion = drawio_to_mermaid(self.drawio_xml, options, self.page_index)
        self.mermaid = conversion.mermaid
        return conversion

    def to_drawio(self, compress: bool = False) -> str:
        """Convert the current Mermaid text; the result becomes the current Draw.io document."""
        if self.mermaid is None:
            raise EmptyInputError('No Mermaid code loaded')
        xml = convert_mermaid_to_drawio(self.mermaid, compress=compress)
        self.load_drawio(xml)
        return xml

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'created_at': self.created_at,
            'has_drawio': self.drawio_xml is not None,
            'has_mermaid': self.mermaid is not None,
            'mermaid': self.mermaid,
            'page_index': self.page_index,
            'pages': [vars(p) for p in self.pages],
        }
