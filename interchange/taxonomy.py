"""
Shape / Style Taxonomy

Static lookup tables that map canonical shapes, line styles and class
relationships onto the concrete syntax of each format.

Draw.io -> canonical lookups are ordered (predicate, variant) tables:
the first predicate that accepts the style string wins. Canonical ->
Draw.io / Mermaid lookups are plain dictionaries, one entry per variant.

The mapping is intentionally lossy: several Draw.io styles collapse onto
one canonical variant, and each variant is re-emitted with one canonical
style string.
"""

from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple


class Shape(str, Enum):
    RECTANGLE = 'rectangle'
    ROUNDED = 'rounded'
    STADIUM = 'stadium'
    SUBROUTINE = 'subroutine'
    CYLINDER = 'cylinder'
    HEXAGON = 'hexagon'
    DIAMOND = 'diamond'
    CIRCLE = 'circle'
    PARALLELOGRAM = 'parallelogram'
    ASYMMETRIC = 'asymmetric'
    CLASS = 'class'
    SUBGRAPH = 'subgraph'


class NodeKind(str, Enum):
    NODE = 'node'
    CLASS = 'class'


class StyleKind(str, Enum):
    PLAIN = 'plain'
    DASHED = 'dashed'
    THICK = 'thick'


class RelationKind(str, Enum):
    ASSOCIATION = 'association'
    AGGREGATION = 'aggregation'
    INHERITANCE = 'inheritance'
    REALIZATION = 'realization'
    DEPENDENCY = 'dependency'


class DiagramType(str, Enum):
    FLOWCHART = 'flowchart'
    SEQUENCE = 'sequence'
    CLASS = 'class'


class Direction(str, Enum):
    TD = 'TD'
    TB = 'TB'
    BT = 'BT'
    RL = 'RL'
    LR = 'LR'


# ──────────────────────────────────────────────────────────────────
# Style strings
# ──────────────────────────────────────────────────────────────────

def parse_style_string(style: str) -> Dict[str, str]:
    """
    Parse Draw.io style string into dictionary.
    Style format: "key1=value1;key2=value2;flag1;flag2"
    """
    result: Dict[str, str] = {}
    if not style:
        return result
    for token in style.split(';'):
        token = token.strip()
        if '=' in token:
            key, value = token.split('=', 1)
            result[key.strip()] = value.strip()
        elif token:
            result[token] = '1'
    return result


StylePredicate = Callable[[str], bool]


def _contains(*needles: str) -> StylePredicate:
    lowered = [n.lower() for n in needles]
    return lambda style: all(n in style for n in lowered)


# ──────────────────────────────────────────────────────────────────
# Shapes
# ──────────────────────────────────────────────────────────────────

# Tested against the lower-cased style string, most specific first.
DRAWIO_SHAPE_RULES: List[Tuple[StylePredicate, Shape]] = [
    (_contains('swimlane'), Shape.SUBGRAPH),
    (_contains('shape=process'), Shape.SUBROUTINE),
    (_contains('shape=cylinder'), Shape.CYLINDER),
    (_contains('shape=datastore'), Shape.CYLINDER),
    (_contains('shape=hexagon'), Shape.HEXAGON),
    (_contains('shape=parallelogram'), Shape.PARALLELOGRAM),
    (_contains('shape=trapezoid'), Shape.ASYMMETRIC),
    (_contains('rhombus'), Shape.DIAMOND),
    (_contains('ellipse'), Shape.CIRCLE),
    (_contains('rounded=1', 'arcsize=50'), Shape.STADIUM),
    (_contains('rounded=1'), Shape.ROUNDED),
]

_BASE_VERTEX_STYLE = 'whiteSpace=wrap;html=1;'

DRAWIO_SHAPE_STYLES: Dict[Shape, str] = {
    Shape.RECTANGLE: 'rounded=0;' + _BASE_VERTEX_STYLE,
    Shape.ROUNDED: 'rounded=1;' + _BASE_VERTEX_STYLE,
    Shape.STADIUM: 'rounded=1;' + _BASE_VERTEX_STYLE + 'arcSize=50;',
    Shape.SUBROUTINE: 'shape=process;' + _BASE_VERTEX_STYLE,
    Shape.CYLINDER: 'shape=cylinder3;' + _BASE_VERTEX_STYLE + 'boundedLbl=1;',
    Shape.HEXAGON: 'shape=hexagon;' + _BASE_VERTEX_STYLE,
    Shape.DIAMOND: 'rhombus;' + _BASE_VERTEX_STYLE,
    Shape.CIRCLE: 'ellipse;' + _BASE_VERTEX_STYLE,
    Shape.PARALLELOGRAM: 'shape=parallelogram;' + _BASE_VERTEX_STYLE,
    Shape.ASYMMETRIC: 'shape=trapezoid;' + _BASE_VERTEX_STYLE,
    Shape.CLASS: 'rounded=0;' + _BASE_VERTEX_STYLE + 'verticalAlign=top;fontStyle=1;',
    Shape.SUBGRAPH: 'swimlane;' + _BASE_VERTEX_STYLE,
}

# Style of the child text cells that carry class members.
DRAWIO_MEMBER_STYLE = (
    'text;strokeColor=none;fillColor=none;align=left;verticalAlign=middle;'
    'spacingLeft=4;overflow=hidden;' + _BASE_VERTEX_STYLE
)

MERMAID_BRACKETS: Dict[Shape, Tuple[str, str]] = {
    Shape.RECTANGLE: ('[', ']'),
    Shape.ROUNDED: ('(', ')'),
    Shape.STADIUM: ('([', '])'),
    Shape.SUBROUTINE: ('[[', ']]'),
    Shape.CYLINDER: ('[(', ')]'),
    Shape.HEXAGON: ('{{', '}}'),
    Shape.DIAMOND: ('{', '}'),
    Shape.CIRCLE: ('((', '))'),
    Shape.PARALLELOGRAM: ('[/', '/]'),
    Shape.ASYMMETRIC: ('>', ']'),
}


def detect_shape(style: str) -> Shape:
    """Map a Draw.io style string to a canonical shape (default rectangle)."""
    if not style:
        return Shape.RECTANGLE
    lowered = style.lower()
    for predicate, shape in DRAWIO_SHAPE_RULES:
        if predicate(lowered):
            return shape
    return Shape.RECTANGLE


def drawio_style_for_shape(shape: Shape) -> str:
    """Return the complete Draw.io vertex style for a canonical shape."""
    return DRAWIO_SHAPE_STYLES.get(shape, DRAWIO_SHAPE_STYLES[Shape.RECTANGLE])


def mermaid_brackets(shape: Shape) -> Tuple[str, str]:
    """Return the Mermaid flowchart (open, close) brackets for a shape."""
    return MERMAID_BRACKETS.get(shape, MERMAID_BRACKETS[Shape.RECTANGLE])


# ──────────────────────────────────────────────────────────────────
# Arrows and relationships
# ──────────────────────────────────────────────────────────────────

def _is_dashed(style: Dict[str, str]) -> bool:
    return style.get('dashed') == '1'


def _stroke_width(style: Dict[str, str]) -> float:
    try:
        return float(style.get('strokeWidth', '1'))
    except ValueError:
        return 1.0


def _end_arrow(style: Dict[str, str]) -> str:
    return style.get('endArrow', '').lower()


def detect_style_kind(style: str) -> StyleKind:
    """Map a Draw.io edge style to a line weight (dashed wins over thick)."""
    parsed = parse_style_string(style)
    if _is_dashed(parsed):
        return StyleKind.DASHED
    if _stroke_width(parsed) >= 2:
        return StyleKind.THICK
    return StyleKind.PLAIN


def has_end_arrow(style: str) -> bool:
    """An edge draws an arrowhead at its target unless endArrow=none."""
    return _end_arrow(parse_style_string(style)) != 'none'


DRAWIO_RELATION_RULES: List[Tuple[Callable[[Dict[str, str]], bool], RelationKind]] = [
    (lambda s: _end_arrow(s) in ('diamond', 'diamondthin'), RelationKind.AGGREGATION),
    (lambda s: _end_arrow(s) == 'block' and _is_dashed(s), RelationKind.REALIZATION),
    (lambda s: _end_arrow(s) == 'block', RelationKind.INHERITANCE),
    (_is_dashed, RelationKind.DEPENDENCY),
]


def detect_relation_kind(style: str) -> RelationKind:
    """Map a Draw.io edge style to a class relationship (default association)."""
    parsed = parse_style_string(style)
    for predicate, kind in DRAWIO_RELATION_RULES:
        if predicate(parsed):
            return kind
    return RelationKind.ASSOCIATION


_BASE_EDGE_STYLE = 'edgeStyle=orthogonalEdgeStyle;rounded=1;orthogonalLoop=1;jettySize=auto;html=1;'

DRAWIO_STYLE_KIND_STYLES: Dict[StyleKind, str] = {
    StyleKind.PLAIN: '',
    StyleKind.DASHED: 'dashed=1;',
    StyleKind.THICK: 'strokeWidth=3;',
}

DRAWIO_RELATION_STYLES: Dict[RelationKind, str] = {
    RelationKind.ASSOCIATION: 'endArrow=classic;',
    RelationKind.AGGREGATION: 'endArrow=diamondThin;endFill=0;',
    RelationKind.INHERITANCE: 'endArrow=block;endFill=0;',
    RelationKind.REALIZATION: 'endArrow=block;endFill=0;dashed=1;',
    RelationKind.DEPENDENCY: 'endArrow=open;dashed=1;',
}


def drawio_style_for_edge(style_kind: StyleKind, arrow_end: bool = True,
                          relation_kind: Optional[RelationKind] = None) -> str:
    """Return one canonical Draw.io edge style for an arrow / relationship kind."""
    if relation_kind is not None:
        return _BASE_EDGE_STYLE + DRAWIO_RELATION_STYLES[relation_kind]
    style = _BASE_EDGE_STYLE + DRAWIO_STYLE_KIND_STYLES[style_kind]
    if not arrow_end:
        style += 'endArrow=none;'
    return style


# (with arrowhead, without arrowhead)
MERMAID_FLOW_ARROWS: Dict[StyleKind, Tuple[str, str]] = {
    StyleKind.PLAIN: ('-->', '---'),
    StyleKind.DASHED: ('-.->', '-.-'),
    StyleKind.THICK: ('==>', '==='),
}

MERMAID_SEQUENCE_ARROWS: Dict[StyleKind, str] = {
    StyleKind.PLAIN: '->>',
    StyleKind.DASHED: '-->>',
    StyleKind.THICK: '->>',
}

MERMAID_RELATIONS: Dict[RelationKind, str] = {
    RelationKind.ASSOCIATION: '-->',
    RelationKind.AGGREGATION: 'o--',
    RelationKind.INHERITANCE: '--|>',
    RelationKind.REALIZATION: '..|>',
    RelationKind.DEPENDENCY: '..>',
}


def mermaid_arrow(style_kind: StyleKind, arrow_end: bool = True) -> str:
    """Return the Mermaid flowchart arrow token for a line weight."""
    with_head, without_head = MERMAID_FLOW_ARROWS[style_kind]
    return with_head if arrow_end else without_head


def mermaid_sequence_arrow(style_kind: StyleKind) -> str:
    return MERMAID_SEQUENCE_ARROWS[style_kind]


def mermaid_relation(kind: RelationKind) -> str:
    """Return the Mermaid class-diagram relationship token."""
    return MERMAID_RELATIONS[kind]
