"""
Mermaid Parser

Turns Mermaid text into a DiagramGraph. The diagram type is read from the
first line; flowchart (graph), sequenceDiagram and classDiagram have their
own sub-parsers, anything else is parsed as a flowchart.

The parser is best-effort: an empty document raises EmptyInputError, any
other line it does not understand is skipped.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Tuple

from interchange.diagram_graph import DiagramGraph, DiagramNode, DiagramSubgraph
from interchange.errors import EmptyInputError, NoNodesError
from interchange.taxonomy import DiagramType, NodeKind, RelationKind, Shape, StyleKind


@dataclass
class MermaidParseResult:
    graph: DiagramGraph
    diagram_type: DiagramType


# ─── Diagram type detection ───────────────────────────────────────

_HEADERS: List[Tuple[str, DiagramType]] = [
    ('flowchart', DiagramType.FLOWCHART),
    ('graph', DiagramType.FLOWCHART),
    ('sequencediagram', DiagramType.SEQUENCE),
    ('classdiagram', DiagramType.CLASS),
]

# Recognised Mermaid headers whose body is not modelled; parsed as flowchart.
_UNMODELLED_HEADERS = (
    'statediagram', 'erdiagram', 'gantt', 'pie', 'mindmap',
    'journey', 'gitgraph', 'timeline',
)

_FENCE_RE = re.compile(r'^\s*```\s*mermaid\s*\n(.*?)\n?\s*```\s*$', re.DOTALL | re.IGNORECASE)


def _content_lines(text: str) -> List[str]:
    """Strip an optional Markdown fence and statement-ending ';', dropping blank and %% lines."""
    fenced = _FENCE_RE.match(text or '')
    if fenced:
        text = fenced.group(1)
    lines = [line.strip().rstrip(';').rstrip() for line in (text or '').split('\n')]
    return [line for line in lines if line and not line.startswith('%%')]


def detect_diagram_type(first_line: str) -> Optional[DiagramType]:
    """Return the diagram type named by a header line, or None if it is not a header."""
    lowered = first_line.lower()
    for prefix, diagram_type in _HEADERS:
        if lowered.startswith(prefix):
            return diagram_type
    if lowered.startswith(_UNMODELLED_HEADERS):
        return DiagramType.FLOWCHART
    return None


def parse_mermaid(text: str) -> MermaidParseResult:
    """Parse Mermaid text into a DiagramGraph plus its source diagram type."""
    lines = _content_lines(text)
    if not lines:
        raise EmptyInputError('Mermaid code is empty')

    diagram_type = detect_diagram_type(lines[0])
    if diagram_type is None:
        # No header at all: the first line is already diagram content.
        diagram_type, body = DiagramType.FLOWCHART, lines
    else:
        body = lines[1:]

    if diagram_type == DiagramType.SEQUENCE:
        graph = _parse_sequence(body)
    elif diagram_type == DiagramType.CLASS:
        graph = _parse_class(body)
    else:
        graph = _parse_flowchart(body)

    if not graph.nodes:
        raise NoNodesError('No nodes found in the Mermaid code')
    return MermaidParseResult(graph=graph, diagram_type=diagram_type)


# ──────────────────────────────────────────────────────────────────
# Flowchart
# ──────────────────────────────────────────────────────────────────

@dataclass
class _EdgePattern:
    regex: Pattern
    style_kind: StyleKind
    arrow_end: bool = True


# Declaration order breaks ties between matches starting at the same column.
_EDGE_PATTERNS: List[_EdgePattern] = [
    _EdgePattern(re.compile(r'-->\s*\|([^|]*)\|'), StyleKind.PLAIN),
    _EdgePattern(re.compile(r'-->'), StyleKind.PLAIN),
    _EdgePattern(re.compile(r'---\s*\|([^|]*)\|'), StyleKind.PLAIN, arrow_end=False),
    _EdgePattern(re.compile(r'---'), StyleKind.PLAIN, arrow_end=False),
    _EdgePattern(re.compile(r'-\.->\s*\|([^|]*)\|'), StyleKind.DASHED),
    _EdgePattern(re.compile(r'-\.->'), StyleKind.DASHED),
    _EdgePattern(re.compile(r'-\.-\s*\|([^|]*)\|'), StyleKind.DASHED, arrow_end=False),
    _EdgePattern(re.compile(r'-\.-'), StyleKind.DASHED, arrow_end=False),
    _EdgePattern(re.compile(r'==>\s*\|([^|]*)\|'), StyleKind.THICK),
    _EdgePattern(re.compile(r'==>'), StyleKind.THICK),
    _EdgePattern(re.compile(r'===\s*\|([^|]*)\|'), StyleKind.THICK, arrow_end=False),
    _EdgePattern(re.compile(r'==='), StyleKind.THICK, arrow_end=False),
    # A -- text --> B
    _EdgePattern(re.compile(r'--\s+([^\s|>\-][^>]*?)\s+-->'), StyleKind.PLAIN),
]

# Most specific first: nested brackets must not be captured by [] / () / {}.
_SHAPE_PATTERNS: List[Tuple[str, Shape]] = [
    (r'\(\[(.+)\]\)', Shape.STADIUM),
    (r'\[\[(.+)\]\]', Shape.SUBROUTINE),
    (r'\[\((.+)\)\]', Shape.CYLINDER),
    (r'\[/(.+)/\]', Shape.PARALLELOGRAM),
    (r'\(\((.+)\)\)', Shape.CIRCLE),
    (r'\{\{(.+)\}\}', Shape.HEXAGON),
    (r'\[(.+)\]', Shape.RECTANGLE),
    (r'\((.+)\)', Shape.ROUNDED),
    (r'\{(.+)\}', Shape.DIAMOND),
    (r'>(.+)\]', Shape.ASYMMETRIC),
]

_NODE_SHAPE_RES: List[Tuple[Pattern, Shape]] = [
    (re.compile(r'^(\w*)\s*' + body + r'\s*(?::::\w+)?$'), shape)
    for body, shape in _SHAPE_PATTERNS
]

_BARE_ID_RE = re.compile(r'^(\w+)')
_DIRECTION_RE = re.compile(r'^(?:direction\s+)?(TB|TD|BT|RL|LR)$', re.IGNORECASE)
_SUBGRAPH_RE = re.compile(r'^subgraph\s+([^\s\[]+)\s*(?:\[(.*)\])?\s*$')
_SKIPPED_KEYWORDS = ('style ', 'classDef ', 'class ', 'linkStyle ', 'click ')


@dataclass
class _FlowState:
    graph: DiagramGraph = field(default_factory=DiagramGraph)
    scopes: List[DiagramSubgraph] = field(default_factory=list)
    anonymous: int = 0


def _unquote(label: str) -> str:
    label = label.strip()
    if len(label) >= 2 and label[0] == label[-1] == '"':
        label = label[1:-1]
    return label.strip()


def _leftmost_edge(text: str) -> Optional[Tuple[re.Match, _EdgePattern]]:
    """Return the edge match that starts earliest; ties go to the earlier pattern."""
    best: Optional[Tuple[re.Match, _EdgePattern]] = None
    for pattern in _EDGE_PATTERNS:
        match = pattern.regex.search(text)
        if match and (best is None or match.start() < best[0].start()):
            best = (match, pattern)
    return best


def _parse_node_part(part: str, state: _FlowState) -> Optional[DiagramNode]:
    """Register the node written in *part* (id plus optional shape brackets)."""
    part = part.strip()
    if not part:
        return None

    node_id, label, shape = '', None, None
    for regex, candidate in _NODE_SHAPE_RES:
        match = regex.match(part)
        if match:
            node_id = match.group(1)
            label = _unquote(match.group(2))
            shape = candidate
            break

    if shape is None:
        bare = _BARE_ID_RE.match(part)
        if not bare:
            return None
        node_id = bare.group(1)
    elif not node_id:
        while not node_id or node_id in state.graph.nodes:
            node_id = f'node_{state.anonymous}'
            state.anonymous += 1

    is_new = node_id not in state.graph.nodes
    node = state.graph.add_node(node_id, label, shape)
    if is_new and state.scopes:
        state.scopes[-1].nodes.append(node_id)
    return node


def _parse_flow_line(line: str, state: _FlowState) -> None:
    parts: List[str] = []
    hops: List[Tuple[re.Match, _EdgePattern]] = []
    rest = line
    found = _leftmost_edge(rest)
    while found:
        match, pattern = found
        parts.append(rest[:match.start()])
        hops.append(found)
        rest = rest[match.end():]
        found = _leftmost_edge(rest)
    parts.append(rest)

    previous = _parse_node_part(parts[0], state)
    for (match, pattern), part in zip(hops, parts[1:]):
        current = _parse_node_part(part, state)
        if previous and current:
            label = match.group(1).strip() if match.groups() else ''
            state.graph.add_edge(
                previous.id, current.id, _unquote(label),
                style_kind=pattern.style_kind,
                arrow_end=pattern.arrow_end,
            )
        previous = current


def _parse_flowchart(lines: List[str]) -> DiagramGraph:
    state = _FlowState()
    for line in lines:
        if _DIRECTION_RE.match(line) or line.startswith(_SKIPPED_KEYWORDS):
            continue

        if line.startswith('subgraph'):
            match = _SUBGRAPH_RE.match(line)
            if match:
                subgraph_id = match.group(1)
                label = _unquote(match.group(2)) if match.group(2) else subgraph_id
            else:
                label = _unquote(line[len('subgraph'):]) or f'subgraph_{len(state.graph.subgraphs)}'
                subgraph_id = re.sub(r'\W+', '_', label)
            state.scopes.append(state.graph.add_subgraph(subgraph_id, label))
            continue

        if line == 'end':
            if state.scopes:
                state.scopes.pop()
            continue

        _parse_flow_line(line, state)
    return state.graph


# ──────────────────────────────────────────────────────────────────
# Sequence diagram
# ──────────────────────────────────────────────────────────────────

_PARTICIPANT_RE = re.compile(r'^(participant|actor)\s+(\S+)(?:\s+as\s+(.+))?$', re.IGNORECASE)
_MESSAGE_RE = re.compile(
    r'^([^\s:]+?)\s*'
    r'(-->>|->>|-->|->|--x|-x|--\)|-\))'
    r'\s*[+-]?\s*([^\s:]+)\s*(?::\s*(.*))?$'
)
# "A - B: text": a bare dash only counts when set off by spaces.
_BARE_MESSAGE_RE = re.compile(r'^(\S+)\s+-\s+([^\s:]+)\s*(?::\s*(.*))?$')


def _parse_sequence(lines: List[str]) -> DiagramGraph:
    graph = DiagramGraph()
    for line in lines:
        declared = _PARTICIPANT_RE.match(line)
        if declared:
            keyword, node_id, alias = declared.groups()
            shape = Shape.CIRCLE if keyword.lower() == 'actor' else Shape.RECTANGLE
            graph.add_node(node_id, (alias or node_id).strip(), shape)
            continue

        message = _MESSAGE_RE.match(line)
        if message:
            source, arrow, target, label = message.groups()
            style_kind = StyleKind.DASHED if arrow.startswith('--') else StyleKind.PLAIN
        else:
            message = _BARE_MESSAGE_RE.match(line)
            if not message:
                continue
            source, target, label = message.groups()
            style_kind = StyleKind.PLAIN

        graph.add_node(source)
        graph.add_node(target)
        graph.add_edge(source, target, (label or '').strip(), style_kind=style_kind)
    return graph


# ──────────────────────────────────────────────────────────────────
# Class diagram
# ──────────────────────────────────────────────────────────────────

# symbol -> (relation, arrowhead written on the left, line style)
_RELATION_SYMBOLS = {
    '<|--': (RelationKind.INHERITANCE, True, StyleKind.PLAIN),
    '--|>': (RelationKind.INHERITANCE, False, StyleKind.PLAIN),
    '<|..': (RelationKind.REALIZATION, True, StyleKind.DASHED),
    '..|>': (RelationKind.REALIZATION, False, StyleKind.DASHED),
    '*--': (RelationKind.AGGREGATION, False, StyleKind.PLAIN),
    '--*': (RelationKind.AGGREGATION, True, StyleKind.PLAIN),
    'o--': (RelationKind.AGGREGATION, False, StyleKind.PLAIN),
    '--o': (RelationKind.AGGREGATION, True, StyleKind.PLAIN),
    '<..': (RelationKind.DEPENDENCY, True, StyleKind.DASHED),
    '..>': (RelationKind.DEPENDENCY, False, StyleKind.DASHED),
    '<--': (RelationKind.ASSOCIATION, True, StyleKind.PLAIN),
    '-->': (RelationKind.ASSOCIATION, False, StyleKind.PLAIN),
    '--': (RelationKind.ASSOCIATION, False, StyleKind.PLAIN),
    '..': (RelationKind.ASSOCIATION, False, StyleKind.DASHED),
}

_SYMBOL_ALTERNATION = '|'.join(
    re.escape(s) for s in sorted(_RELATION_SYMBOLS, key=len, reverse=True)
)
_RELATION_RE = re.compile(
    r'^([^\s"]+?)\s*(?:"[^"]*"\s*)?(' + _SYMBOL_ALTERNATION + r')\s*(?:"[^"]*"\s*)?'
    r'([^\s":]+)\s*(?::\s*(.*))?$'
)
_CLASS_DECL_RE = re.compile(r'^class\s+(\w+)(?:~[^~]*~)?(?:\s*\[\s*"?(.*?)"?\s*\])?\s*(\{)?\s*(\})?\s*$')
_MEMBER_LINE_RE = re.compile(r'^(\w+)\s*:\s*(.+)$')


def _class_node(graph: DiagramGraph, node_id: str, label: Optional[str] = None) -> DiagramNode:
    return graph.add_node(node_id, label, Shape.CLASS, kind=NodeKind.CLASS)


def _parse_class(lines: List[str]) -> DiagramGraph:
    graph = DiagramGraph()
    body_of: Optional[DiagramNode] = None

    for line in lines:
        if body_of is not None:
            if line.startswith('}'):
                body_of = None
            else:
                body_of.members.append(line)
            continue

        declared = _CLASS_DECL_RE.match(line)
        if declared:
            node_id, display, opens, closes = declared.groups()
            node = _class_node(graph, node_id, display or node_id)
            if opens and not closes:
                body_of = node
            continue

        relation = _RELATION_RE.match(line)
        if relation:
            left, symbol, right, label = relation.groups()
            kind, points_left, style_kind = _RELATION_SYMBOLS[symbol]
            source, target = (right, left) if points_left else (left, right)
            _class_node(graph, left)
            _class_node(graph, right)
            graph.add_edge(
                source, target, (label or '').strip(),
                style_kind=style_kind,
                relation_kind=kind,
            )
            continue

        member = _MEMBER_LINE_RE.match(line)
        if member:
            _class_node(graph, member.group(1)).members.append(member.group(2).strip())
    return graph
