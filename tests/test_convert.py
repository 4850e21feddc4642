from __future__ import annotations

import io
import sys
import unittest
import urllib.parse
from contextlib import redirect_stderr
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT))

from interchange.convert import (
    ConversionSession, MermaidOptions, convert_drawio_to_mermaid,
    convert_mermaid_to_drawio, drawio_to_mermaid, mermaid_as_drawio_data,
)
from interchange.drawio_parser import parse_drawio
from interchange.errors import (
    ConversionError, EmptyInputError, NoNodesError, OptionsError, StructuralParseError,
)
from interchange.mermaid_parser import parse_mermaid
from interchange.taxonomy import DiagramType, NodeKind, Shape
from interchange.templates import get_template

TWO_PAGES = (
    "<mxfile>"
    '<diagram id="p1" name="Flow"><mxGraphModel><root><mxCell id="0"/><mxCell id="1" parent="0"/>'
    '<mxCell id="a" value="Start" vertex="1" parent="1"><mxGeometry width="100" height="40" as="geometry"/></mxCell>'
    '<mxCell id="b" value="End" style="ellipse;" vertex="1" parent="1"><mxGeometry y="100" width="100" height="40" as="geometry"/></mxCell>'
    '<mxCell id="e" edge="1" parent="1" source="a" target="b"><mxGeometry relative="1" as="geometry"/></mxCell>'
    "</root></mxGraphModel></diagram>"
    '<diagram id="p2" name="Calls"><mxGraphModel><root><mxCell id="0"/><mxCell id="1" parent="0"/>'
    '<mxCell id="c" value="Client" vertex="1" parent="1"><mxGeometry width="100" height="40" as="geometry"/></mxCell>'
    '<mxCell id="s" value="Server" vertex="1" parent="1"><mxGeometry x="200" width="100" height="40" as="geometry"/></mxCell>'
    '<mxCell id="m" value="HTTP request" edge="1" parent="1" source="c" target="s"><mxGeometry relative="1" as="geometry"/></mxCell>'
    "</root></mxGraphModel></diagram>"
    "</mxfile>"
)


class QuietTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._stderr = redirect_stderr(io.StringIO())
        self._stderr.__enter__()

    def tearDown(self) -> None:
        self._stderr.__exit__(None, None, None)


class PipelineTests(QuietTestCase):
    def test_drawio_to_mermaid_flowchart(self) -> None:
        mermaid = convert_drawio_to_mermaid(TWO_PAGES)
        self.assertIn("flowchart TD", mermaid)
        self.assertIn("a[Start]", mermaid)
        self.assertIn("b((End))", mermaid)
        self.assertIn("a --> b", mermaid)

    def test_auto_type_uses_classifier(self) -> None:
        conversion = drawio_to_mermaid(TWO_PAGES, MermaidOptions(diagram_type="auto"), page_index=1)
        self.assertEqual(conversion.diagram_type, DiagramType.SEQUENCE)
        self.assertIn("c->>s: HTTP request", conversion.mermaid)
        self.assertEqual((conversion.page_index, conversion.page_count), (1, 2))

    def test_explicit_type_overrides_classifier(self) -> None:
        conversion = drawio_to_mermaid(TWO_PAGES, MermaidOptions(direction="lr"), page_index=1)
        self.assertEqual(conversion.diagram_type, DiagramType.FLOWCHART)
        self.assertIn("flowchart LR", conversion.mermaid)

    def test_mermaid_to_drawio_lays_out_nodes(self) -> None:
        xml = convert_mermaid_to_drawio("flowchart TD\nA[Start] --> B{Check}\nB -->|yes| C")
        graph = parse_drawio(xml).graph
        self.assertEqual(list(graph.nodes), ["A", "B", "C"])
        self.assertEqual(graph.nodes["B"].shape, Shape.DIAMOND)
        self.assertLess(graph.nodes["A"].geometry.y, graph.nodes["B"].geometry.y)
        self.assertEqual(graph.edges[1].label, "yes")

    def test_structural_round_trip_through_drawio(self) -> None:
        source = parse_mermaid(get_template("flowchart-basic").code).graph
        xml = convert_mermaid_to_drawio(get_template("flowchart-basic").code)
        back = parse_mermaid(convert_drawio_to_mermaid(xml)).graph
        self.assertEqual(list(back.nodes), list(source.nodes))
        self.assertEqual(
            [(e.source, e.target, e.label) for e in back.edges],
            [(e.source, e.target, e.label) for e in source.edges],
        )
        self.assertEqual(
            {n.id: (n.label, n.shape) for n in back.nodes.values()},
            {n.id: (n.label, n.shape) for n in source.nodes.values()},
        )

    def test_class_diagram_round_trip(self) -> None:
        xml = convert_mermaid_to_drawio(get_template("class-mvc").code)
        conversion = drawio_to_mermaid(xml, MermaidOptions(diagram_type="auto"))
        self.assertEqual(conversion.diagram_type, DiagramType.CLASS)
        graph = parse_mermaid(conversion.mermaid).graph
        self.assertEqual(graph.nodes["Model"].members, ["-data", "+getData()", "+setData()"])
        self.assertEqual(graph.nodes["Model"].kind, NodeKind.CLASS)
        self.assertEqual(len(graph.edges), 3)

    def test_compressed_output_converts_back(self) -> None:
        xml = convert_mermaid_to_drawio("graph LR\nX --> Y", compress=True)
        self.assertIn("X --> Y", convert_drawio_to_mermaid(xml))

    def test_drawio_data(self) -> None:
        data = mermaid_as_drawio_data("graph TD\nA --> B")
        self.assertTrue(data.data_url.startswith("data:text/xml,"))
        self.assertEqual(urllib.parse.unquote(data.encoded), data.xml)

    def test_summary_is_logged(self) -> None:
        stderr = io.StringIO()
        with redirect_stderr(stderr):
            convert_mermaid_to_drawio("graph TD\nA --> B")
        self.assertIn("Extracted: 2 nodes, 1 edges, 0 groups", stderr.getvalue())


class PipelineErrorTests(QuietTestCase):
    def test_errors_share_a_base_class(self) -> None:
        for exc in (EmptyInputError, NoNodesError, OptionsError, StructuralParseError):
            self.assertTrue(issubclass(exc, ConversionError))

    def test_empty_inputs(self) -> None:
        with self.assertRaises(EmptyInputError):
            convert_drawio_to_mermaid("")
        with self.assertRaises(EmptyInputError):
            convert_mermaid_to_drawio("")

    def test_malformed_xml(self) -> None:
        with self.assertRaises(StructuralParseError):
            convert_drawio_to_mermaid("<mxfile><diagram>")

    def test_document_without_nodes(self) -> None:
        with self.assertRaises(NoNodesError):
            convert_drawio_to_mermaid('<mxGraphModel><root><mxCell id="0"/></root></mxGraphModel>')

    def test_invalid_options(self) -> None:
        with self.assertRaises(OptionsError):
            MermaidOptions(direction="UP")
        with self.assertRaises(OptionsError):
            MermaidOptions(diagram_type="gantt")


class SessionTests(QuietTestCase):
    def test_drawio_session_flow(self) -> None:
        session = ConversionSession()
        pages = session.load_drawio(TWO_PAGES)
        self.assertEqual([p.name for p in pages], ["Flow", "Calls"])

        session.select_page(1)
        conversion = session.to_mermaid(MermaidOptions(diagram_type="auto"))
        self.assertEqual(conversion.diagram_type, DiagramType.SEQUENCE)
        self.assertEqual(session.mermaid, conversion.mermaid)
        self.assertEqual(session.to_dict()["page_index"], 1)

    def test_mermaid_session_flow(self) -> None:
        session = ConversionSession()
        session.load_mermaid("graph TD\nA --> B")
        xml = session.to_drawio()
        self.assertEqual(session.drawio_xml, xml)
        self.assertEqual(len(session.pages), 1)

    def test_sessions_do_not_share_state(self) -> None:
        first, second = ConversionSession(), ConversionSession()
        first.load_mermaid("graph TD\nA")
        self.assertIsNone(second.mermaid)
        self.assertNotEqual(first.id, second.id)

    def test_session_errors(self) -> None:
        session = ConversionSession()
        with self.assertRaises(EmptyInputError):
            session.to_mermaid()
        with self.assertRaises(EmptyInputError):
            session.to_drawio()
        session.load_drawio(TWO_PAGES)
        with self.assertRaises(OptionsError):
            session.select_page(7)


if __name__ == "__main__":
    unittest.main()
