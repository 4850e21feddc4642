from __future__ import annotations

import sys
import unittest
import xml.etree.ElementTree as ET
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT))

from interchange.diagram_graph import DiagramGraph
from interchange.drawio_parser import decode_diagram_data, parse_drawio
from interchange.drawio_writer import encode_diagram_data, generate_drawio
from interchange.mermaid_parser import parse_mermaid
from interchange.mermaid_writer import format_label, generate_mermaid, sanitize_id, wrap_markdown
from interchange.taxonomy import DiagramType, NodeKind, RelationKind, Shape, StyleKind


class MermaidWriterTests(unittest.TestCase):
    def test_flowchart_round_trip(self) -> None:
        graph = parse_mermaid("flowchart TD\nA[Start]-->B{Check}").graph
        text = generate_mermaid(graph)
        self.assertTrue(text.startswith("flowchart TD\n"))
        self.assertIn("A[Start]", text)
        self.assertIn("B{Check}", text)
        self.assertIn("A --> B", text)
        self.assertNotIn("|", text)

    def test_direction_and_edge_styles(self) -> None:
        graph = DiagramGraph()
        graph.add_node("a", "A")
        graph.add_node("b", "B", Shape.CIRCLE)
        graph.add_edge("a", "b", "maybe", style_kind=StyleKind.DASHED)
        graph.add_edge("b", "a", style_kind=StyleKind.THICK, arrow_end=False)
        text = generate_mermaid(graph, direction="LR")
        self.assertIn("flowchart LR", text)
        self.assertIn("b((B))", text)
        self.assertIn("a -.->|maybe| b", text)
        self.assertIn("b === a", text)

    def test_dangling_edges_are_dropped(self) -> None:
        graph = DiagramGraph()
        graph.add_node("a", "A")
        graph.add_edge("a", "ghost")
        self.assertNotIn("ghost", generate_mermaid(graph))

    def test_ids_are_sanitized_and_unique(self) -> None:
        self.assertEqual(sanitize_id("my node-1"), "my_node1")
        self.assertEqual(sanitize_id("42"), "n_42")
        self.assertEqual(sanitize_id("end"), "end_node")
        graph = DiagramGraph()
        graph.add_node("a-b", "one")
        graph.add_node("ab", "two")
        text = generate_mermaid(graph)
        self.assertIn("ab[one]", text)
        self.assertIn("ab_1[two]", text)

    def test_labels_with_special_characters_are_quoted(self) -> None:
        self.assertEqual(format_label("plain text"), "plain text")
        self.assertEqual(format_label("f(x)"), '"f(x)"')
        self.assertEqual(format_label('say "hi" (now)'), '"say #quot;hi#quot; (now)"')
        self.assertEqual(format_label("one\ntwo"), "one<br/>two")

    def test_sequence_output(self) -> None:
        graph = DiagramGraph()
        graph.add_node("u", "User", Shape.CIRCLE)
        graph.add_node("s", "Server")
        graph.add_edge("u", "s", "API request")
        graph.add_edge("s", "u", style_kind=StyleKind.DASHED)
        text = generate_mermaid(graph, DiagramType.SEQUENCE)
        lines = text.splitlines()
        self.assertEqual(lines[0], "sequenceDiagram")
        self.assertIn("    actor u as User", lines)
        self.assertIn("    participant s as Server", lines)
        self.assertIn("    u->>s: API request", lines)
        self.assertIn("    s-->>u: message", lines)

    def test_class_output(self) -> None:
        graph = DiagramGraph()
        graph.add_node("Animal", "Animal", Shape.CLASS, kind=NodeKind.CLASS, members=["+eat()"])
        graph.add_node("Duck", "Duck", Shape.CLASS, kind=NodeKind.CLASS)
        graph.add_edge("Duck", "Animal", relation_kind=RelationKind.INHERITANCE)
        graph.add_edge("Duck", "Animal", "likes", style="endArrow=open;dashed=1;")
        text = generate_mermaid(graph, "class")
        self.assertIn("classDiagram", text)
        self.assertIn("    class Animal {\n        +eat()\n    }", text)
        self.assertIn("    class Duck\n", text)
        self.assertIn("Duck --|> Animal", text)
        self.assertIn("Duck ..> Animal : likes", text)

    def test_wrap_markdown(self) -> None:
        self.assertEqual(wrap_markdown("graph TD\nA\n"), "```mermaid\ngraph TD\nA\n```\n")


class DrawioWriterTests(unittest.TestCase):
    def _graph(self) -> DiagramGraph:
        graph = DiagramGraph()
        graph.add_node("A", "Start")
        graph.add_node("B", "Check", Shape.DIAMOND)
        graph.add_edge("A", "B", "go")
        graph.add_edge("A", "nowhere")
        return graph

    def test_document_structure(self) -> None:
        root = ET.fromstring(generate_drawio(self._graph()))
        self.assertEqual(root.tag, "mxfile")
        diagram = root.find("diagram")
        self.assertEqual(diagram.get("name"), "Page-1")
        cells = diagram.findall("./mxGraphModel/root/mxCell")
        ids = [c.get("id") for c in cells]
        self.assertEqual(ids[:2], ["0", "1"])
        vertices = [c for c in cells if c.get("vertex") == "1"]
        edges = [c for c in cells if c.get("edge") == "1"]
        self.assertEqual(len(vertices), 2)
        self.assertEqual(len(edges), 1)
        self.assertEqual((edges[0].get("source"), edges[0].get("target")), ("A", "B"))
        self.assertIn("rhombus", vertices[1].get("style"))
        self.assertIsNotNone(vertices[0].find("mxGeometry"))

    def test_parses_back(self) -> None:
        graph = parse_drawio(generate_drawio(self._graph())).graph
        self.assertEqual(graph.nodes["A"].label, "Start")
        self.assertEqual(graph.nodes["B"].shape, Shape.DIAMOND)
        self.assertEqual([(e.source, e.target, e.label) for e in graph.edges], [("A", "B", "go")])

    def test_compressed_output(self) -> None:
        xml = generate_drawio(self._graph(), compress=True)
        diagram = ET.fromstring(xml).find("diagram")
        self.assertIsNone(diagram.find("mxGraphModel"))
        self.assertTrue(decode_diagram_data(diagram.text).startswith("<mxGraphModel"))
        self.assertEqual(len(parse_drawio(xml).graph.nodes), 2)

    def test_class_nodes_become_container_with_members(self) -> None:
        graph = DiagramGraph()
        graph.add_node("Order", "Order", Shape.CLASS, kind=NodeKind.CLASS,
                       members=["+id: int", "+total()"])
        parsed = parse_drawio(generate_drawio(graph)).graph
        self.assertEqual(list(parsed.nodes), ["Order"])
        self.assertEqual(parsed.nodes["Order"].kind, NodeKind.CLASS)
        self.assertEqual(parsed.nodes["Order"].members, ["+id: int", "+total()"])

    def test_reserved_cell_ids_are_renamed(self) -> None:
        graph = DiagramGraph()
        graph.add_node("1", "One")
        graph.add_node("2", "Two")
        graph.add_edge("1", "2")
        parsed = parse_drawio(generate_drawio(graph)).graph
        self.assertEqual(set(parsed.nodes), {"node_1", "2"})
        self.assertEqual((parsed.edges[0].source, parsed.edges[0].target), ("node_1", "2"))

    def test_labels_survive_html_escaping(self) -> None:
        graph = DiagramGraph()
        graph.add_node("a", "a < b & c\nsecond line")
        parsed = parse_drawio(generate_drawio(graph)).graph
        self.assertEqual(parsed.nodes["a"].label, "a < b & c\nsecond line")

    def test_encode_is_inverse_of_decode(self) -> None:
        xml = "<mxGraphModel><root><mxCell id=\"0\"/></root></mxGraphModel>"
        self.assertEqual(decode_diagram_data(encode_diagram_data(xml)), xml)


if __name__ == "__main__":
    unittest.main()
