from __future__ import annotations

import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT))

from interchange.cli import main
from interchange.diagram_graph import load_graph

DRAWIO = (
    '<mxfile><diagram id="p1" name="Only"><mxGraphModel><root>'
    '<mxCell id="0"/><mxCell id="1" parent="0"/>'
    '<mxCell id="a" value="Start" vertex="1" parent="1"><mxGeometry width="100" height="40" as="geometry"/></mxCell>'
    '<mxCell id="b" value="Done" style="rhombus;" vertex="1" parent="1"><mxGeometry y="100" width="100" height="40" as="geometry"/></mxCell>'
    '<mxCell id="e" edge="1" parent="1" source="a" target="b"><mxGeometry relative="1" as="geometry"/></mxCell>'
    "</root></mxGraphModel></diagram></mxfile>"
)


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _file(self, name: str, text: str) -> str:
        path = self.tmp / name
        path.write_text(text, encoding="utf-8")
        return str(path)

    def _run(self, *argv: str):
        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = main(list(argv))
        return code, stdout.getvalue(), stderr.getvalue()

    def test_to_mermaid_to_stdout(self) -> None:
        code, out, err = self._run("to-mermaid", "-i", self._file("d.drawio", DRAWIO), "-d", "lr")
        self.assertEqual(code, 0)
        self.assertTrue(out.startswith("flowchart LR\n"))
        self.assertIn("b{Done}", out)
        self.assertIn("Extracted: 2 nodes, 1 edges, 0 groups", err)

    def test_to_mermaid_markdown_to_file(self) -> None:
        target = self.tmp / "out" / "d.md"
        code, _, err = self._run(
            "to-mermaid", "-i", self._file("d.drawio", DRAWIO), "-o", str(target), "--markdown",
        )
        self.assertEqual(code, 0)
        self.assertTrue(target.read_text(encoding="utf-8").startswith("```mermaid\nflowchart TD"))
        self.assertIn("Written to", err)

    def test_to_drawio(self) -> None:
        code, out, _ = self._run("to-drawio", "-i", self._file("d.mmd", "graph TD\nA --> B"))
        self.assertEqual(code, 0)
        self.assertTrue(out.startswith("<mxfile"))

    def test_pages(self) -> None:
        code, out, _ = self._run("pages", "-i", self._file("d.drawio", DRAWIO))
        self.assertEqual(code, 0)
        self.assertEqual(out, "0\tp1\tOnly\n")

    def test_validate_exit_codes(self) -> None:
        code, out, _ = self._run("validate", "-i", self._file("bad.mmd", "graph TD\nA[x"))
        self.assertEqual(code, 1)
        self.assertIn("line 2:", out)
        code, _, _ = self._run("validate", "-i", self._file("ok.mmd", "graph TD\nA[x]"))
        self.assertEqual(code, 0)

    def test_graph_dump(self) -> None:
        code, out, _ = self._run("graph", "-i", self._file("d.drawio", DRAWIO))
        self.assertEqual(code, 0)
        self.assertEqual([n["id"] for n in json.loads(out)["nodes"]], ["a", "b"])

        target = self.tmp / "d.graph.json"
        code, _, _ = self._run("graph", "-i", self._file("d.mmd", "graph TD\nX --> Y"), "-o", str(target))
        self.assertEqual(code, 0)
        self.assertEqual(list(load_graph(target).nodes), ["X", "Y"])

    def test_errors_return_1(self) -> None:
        code, _, err = self._run("to-mermaid", "-i", str(self.tmp / "missing.drawio"))
        self.assertEqual(code, 1)
        self.assertIn("Error: Input file not found", err)

        code, _, err = self._run("to-drawio", "-i", self._file("empty.mmd", ""))
        self.assertEqual(code, 1)
        self.assertIn("Error:", err)


if __name__ == "__main__":
    unittest.main()
