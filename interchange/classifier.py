"""Diagram-type classifier for graphs read from Draw.io."""

from interchange.diagram_graph import DiagramGraph
from interchange.taxonomy import DiagramType, NodeKind

SEQUENCE_VOCABULARY = ('request', 'response', 'call')
CLASS_VOCABULARY = ('class', 'interface')


def classify(graph: DiagramGraph) -> DiagramType:
    """Guess the Mermaid diagram type that best fits a graph.

    Sequence vocabulary on any edge label wins, then class-like nodes,
    otherwise flowchart. Words match case-sensitively, so "Classify" or
    "Request" do not count. Advisory only: callers may request a type instead.
    """
    for edge in graph.edges:
        if any(word in edge.label for word in SEQUENCE_VOCABULARY):
            return DiagramType.SEQUENCE

    for node in graph.nodes.values():
        if node.kind == NodeKind.CLASS:
            return DiagramType.CLASS
        if any(word in node.label for word in CLASS_VOCABULARY):
            return DiagramType.CLASS

    return DiagramType.FLOWCHART
