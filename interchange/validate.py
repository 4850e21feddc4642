"""
Mermaid syntax pre-check.

Cheap checks run before a conversion is attempted: a recognised diagram
keyword on the first line and balanced brackets. Returns the issues found
(an empty list means the text passed).
"""

from dataclasses import dataclass
from typing import Dict, List

VALID_DIAGRAM_KEYWORDS = [
    'flowchart', 'graph', 'sequenceDiagram', 'classDiagram',
    'stateDiagram', 'erDiagram', 'gantt', 'pie', 'mindmap',
]

_OPENERS = '[{('
_CLOSERS = {']': '[', '}': '{', ')': '('}


@dataclass
class SyntaxIssue:
    line: int
    message: str


def validate_mermaid_syntax(code: str) -> List[SyntaxIssue]:
    lines = (code or '').split('\n')
    if not lines[0].strip():
        return [SyntaxIssue(line=1, message='Mermaid code is empty')]

    issues: List[SyntaxIssue] = []
    first_line = lines[0].strip().lower()
    if not any(first_line.startswith(k.lower()) for k in VALID_DIAGRAM_KEYWORDS):
        issues.append(SyntaxIssue(
            line=1,
            message=f"Unrecognised diagram type. Must start with: {', '.join(VALID_DIAGRAM_KEYWORDS)}",
        ))

    depth: Dict[str, int] = {opener: 0 for opener in _OPENERS}
    for number, line in enumerate(lines, start=1):
        for char in line:
            if char in depth:
                depth[char] += 1
            elif char in _CLOSERS:
                opener = _CLOSERS[char]
                depth[opener] -= 1
                if depth[opener] < 0:
                    issues.append(SyntaxIssue(
                        line=number,
                        message=f"Closing bracket '{char}' without a matching '{opener}'",
                    ))
                    depth[opener] = 0

    for opener, count in depth.items():
        if count > 0:
            issues.append(SyntaxIssue(
                line=len(lines),
                message=f"{count} unclosed '{opener}' bracket(s)",
            ))
    return issues
