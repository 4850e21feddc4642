"""
Command line for the interchange engine.

Usage:
    interchange to-mermaid --input diagram.drawio [--output out.mmd] [--page 0]
                           [--direction LR] [--type auto] [--markdown]
    interchange to-drawio  --input diagram.mmd [--output out.drawio] [--compress]
    interchange pages      --input diagram.drawio
    interchange validate   --input diagram.mmd
    interchange graph      --input diagram.drawio|diagram.mmd [--output graph.json]
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from interchange.config import load_settings
from interchange.convert import (
    DIAGRAM_TYPES, DIRECTIONS, MermaidOptions,
    convert_mermaid_to_drawio, drawio_to_mermaid, wrap_markdown,
)
from interchange.diagram_graph import save_graph, to_json
from interchange.drawio_parser import list_pages, parse_drawio
from interchange.errors import ConversionError
from interchange.mermaid_parser import parse_mermaid
from interchange.validate import validate_mermaid_syntax

DRAWIO_SUFFIXES = ('.drawio', '.xml', '.dio')


def _read_input(path_arg: str) -> str:
    if path_arg == '-':
        return sys.stdin.read()
    input_path = Path(path_arg)
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")
    return input_path.read_text(encoding='utf-8', errors='ignore')


def _write_output(text: str, output: Optional[str]) -> None:
    if output:
        out = Path(output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding='utf-8')
        print(f"  Written to {out}", file=sys.stderr)
    else:
        sys.stdout.write(text)


def _cmd_to_mermaid(args: argparse.Namespace) -> int:
    options = MermaidOptions(direction=args.direction, diagram_type=args.type)
    conversion = drawio_to_mermaid(_read_input(args.input), options, args.page)
    mermaid = wrap_markdown(conversion.mermaid) if args.markdown else conversion.mermaid
    _write_output(mermaid, args.output)
    return 0


def _cmd_to_drawio(args: argparse.Namespace) -> int:
    xml = convert_mermaid_to_drawio(_read_input(args.input), compress=args.compress)
    _write_output(xml + '\n', args.output)
    return 0


def _cmd_pages(args: argparse.Namespace) -> int:
    for page in list_pages(_read_input(args.input)):
        print(f"{page.index}\t{page.id}\t{page.name}")
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    issues = validate_mermaid_syntax(_read_input(args.input))
    for issue in issues:
        print(f"line {issue.line}: {issue.message}")
    if issues:
        return 1
    print("OK", file=sys.stderr)
    return 0


def _cmd_graph(args: argparse.Namespace) -> int:
    text = _read_input(args.input)
    if args.input.lower().endswith(DRAWIO_SUFFIXES) or text.lstrip().startswith('<'):
        graph = parse_drawio(text, args.page).graph
    else:
        graph = parse_mermaid(text).graph
    if args.output:
        save_graph(graph, args.output)
        print(f"  Graph written to {args.output}", file=sys.stderr)
    else:
        print(json.dumps(to_json(graph), indent=2, default=str))
    return 0


def build_parser() -> argparse.ArgumentParser:
    settings = load_settings()
    parser = argparse.ArgumentParser(
        prog='interchange',
        description='Convert diagrams between Mermaid and Draw.io',
    )
    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('to-mermaid', help='Convert a Draw.io document to Mermaid')
    p.add_argument('--input', '-i', required=True, help="Input .drawio file ('-' for stdin)")
    p.add_argument('--output', '-o', help='Output file (default: stdout)')
    p.add_argument('--page', '-p', type=int, default=0, help='Page index (0-based)')
    p.add_argument('--direction', '-d', default=settings.direction, type=str.upper,
                   choices=DIRECTIONS, help='Flowchart direction')
    p.add_argument('--type', '-t', default=settings.diagram_type, type=str.lower,
                   choices=DIAGRAM_TYPES, help="Mermaid diagram type ('auto' to detect)")
    p.add_argument('--markdown', action='store_true', help='Wrap output in a ```mermaid fence')
    p.set_defaults(func=_cmd_to_mermaid)

    p = sub.add_parser('to-drawio', help='Convert Mermaid text to a Draw.io document')
    p.add_argument('--input', '-i', required=True, help="Input Mermaid file ('-' for stdin)")
    p.add_argument('--output', '-o', help='Output file (default: stdout)')
    p.add_argument('--compress', action='store_true', help='Store the page compressed')
    p.set_defaults(func=_cmd_to_drawio)

    p = sub.add_parser('pages', help='List the pages of a Draw.io document')
    p.add_argument('--input', '-i', required=True, help="Input .drawio file ('-' for stdin)")
    p.set_defaults(func=_cmd_pages)

    p = sub.add_parser('validate', help='Pre-check Mermaid syntax')
    p.add_argument('--input', '-i', required=True, help="Input Mermaid file ('-' for stdin)")
    p.set_defaults(func=_cmd_validate)

    p = sub.add_parser('graph', help='Dump the parsed DiagramGraph as JSON')
    p.add_argument('--input', '-i', required=True, help='Input .drawio or Mermaid file')
    p.add_argument('--output', '-o', help='Output .graph.json path (default: stdout)')
    p.add_argument('--page', '-p', type=int, default=0, help='Page index (0-based)')
    p.set_defaults(func=_cmd_graph)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (ConversionError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
