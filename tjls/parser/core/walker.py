"""
Statement walker shared by the symbol extractor and the reference builder.

Every code line is cut into statements at its brace characters, so a
definition is recognised at the start of a line or right after a '{' or '}'.
The walker tracks the brace depth and a stack of open definition frames,
and reports for every statement which frames enclose it.
"""

import re
from typing import Iterator, List, NamedTuple, Optional, Tuple

from tjls.config.config import IDENTIFIER
from tjls.scanner.core.scanner import scan_lines

# Definition patterns, matched against the raw statement text.
DEFINITION_PATTERNS = {
    "task": re.compile(rf'^\s*task\s+({IDENTIFIER})(?:\s+"([^"]*)")?'),
    "resource": re.compile(rf'^\s*resource\s+({IDENTIFIER})\s+"([^"]*)"'),
    "account": re.compile(rf'^\s*account\s+({IDENTIFIER})\s+"([^"]*)"'),
    "scenario": re.compile(rf'^\s*scenario\s+({IDENTIFIER})\s+"([^"]*)"'),
    "macro": re.compile(rf"^\s*macro\s+({IDENTIFIER})\s+\["),
}

# Kinds whose '{' opens a frame on the stack.
FRAME_KINDS = ("task", "resource", "account", "scenario")

# 'supplement task x {' reopens the block of an existing definition.
SUPPLEMENT_PATTERN = re.compile(rf"^\s*supplement\s+(task|resource|account)\s+({IDENTIFIER})")


class Definition(NamedTuple):
    kind: str
    id: str
    name: Optional[str]
    id_start: int  # column of the identifier within the line


class Frame(NamedTuple):
    kind: str
    id: str
    line: int
    depth: int


class Statement(NamedTuple):
    line: int
    column: int  # offset of `text` within the line
    text: str  # raw statement text
    code: str  # statement text with comments, strings and macro bodies blanked
    line_text: str
    depth: int
    frames: Tuple[Frame, ...]
    definition: Optional[Definition]

    def enclosing(self, kind: str) -> Optional[Frame]:
        """Innermost open frame of the given kind whose depth is below the current depth."""
        for frame in reversed(self.frames):
            if frame.kind == kind and frame.depth < self.depth:
                return frame
        return None


def _match_definition(text: str, column: int) -> Optional[Definition]:
    for kind, pattern in DEFINITION_PATTERNS.items():
        match = pattern.match(text)
        if match:
            name = match.group(2) if match.lastindex and match.lastindex >= 2 else None
            return Definition(kind, match.group(1), name, column + match.start(1))
    return None


def _split_statements(code: str) -> List[Tuple[int, int, str]]:
    """Returns `(start, end, brace)` triples; `brace` is the char ending the piece, or ''."""
    pieces = []
    start = 0
    for i, char in enumerate(code):
        if char in "{}":
            pieces.append((start, i, char))
            start = i + 1
    pieces.append((start, len(code), ""))
    return pieces


def walk_statements(text: str) -> Iterator[Statement]:
    """
    Yields every statement of the document in order.

    Comment lines are skipped. Brace depth never goes negative: an extra '}'
    is ignored here and reported by the brace validator.
    """
    depth = 0
    stack: List[Frame] = []
    pending: Optional[Frame] = None

    for scanned in scan_lines(text):
        if scanned.is_comment:
            continue

        for start, end, brace in _split_statements(scanned.code):
            raw = scanned.text[start:end]
            code = scanned.code[start:end]

            definition = _match_definition(raw, start) if code.strip() else None
            yield Statement(
                line=scanned.index,
                column=start,
                text=raw,
                code=code,
                line_text=scanned.text,
                depth=depth,
                frames=tuple(stack),
                definition=definition,
            )

            if code.strip():
                pending = None
                if definition is not None and definition.kind in FRAME_KINDS:
                    pending = Frame(definition.kind, definition.id, scanned.index, depth)
                elif definition is None:
                    supplement = SUPPLEMENT_PATTERN.match(code)
                    if supplement:
                        pending = Frame(supplement.group(1), supplement.group(2), scanned.index, depth)

            if brace == "{":
                if pending is not None:
                    stack.append(pending._replace(depth=depth))
                    pending = None
                depth += 1
            elif brace == "}":
                pending = None
                depth = max(0, depth - 1)
                while stack and stack[-1].depth >= depth:
                    stack.pop()
