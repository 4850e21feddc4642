"""Mermaid <-> Draw.io diagram interchange.

Parses Mermaid (flowchart, sequence, class) and Draw.io XML into one shared
DiagramGraph, lays graphs out, and serializes them back to either format.
"""

from interchange.convert import (
    ConversionSession,
    MermaidOptions,
    convert_drawio_to_mermaid,
    convert_mermaid_to_drawio,
    mermaid_as_drawio_data,
    wrap_markdown,
)
from interchange.diagram_graph import DiagramGraph
from interchange.drawio_parser import list_pages, parse_drawio
from interchange.errors import (
    ConversionError,
    DecodeError,
    EmptyInputError,
    NoNodesError,
    OptionsError,
    StructuralParseError,
)
from interchange.mermaid_parser import parse_mermaid
from interchange.validate import validate_mermaid_syntax

__all__ = [
    "ConversionSession",
    "MermaidOptions",
    "convert_drawio_to_mermaid",
    "convert_mermaid_to_drawio",
    "mermaid_as_drawio_data",
    "wrap_markdown",
    "DiagramGraph",
    "list_pages",
    "parse_drawio",
    "parse_mermaid",
    "validate_mermaid_syntax",
    "ConversionError",
    "DecodeError",
    "EmptyInputError",
    "NoNodesError",
    "OptionsError",
    "StructuralParseError",
]
