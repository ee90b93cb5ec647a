import re
from typing import List, NamedTuple, Optional

from tjls.config.config import IDENTIFIER, REPORT_KEYWORDS
from tjls.scanner.core.classes import Position
from tjls.scanner.core.scanner import scan_lines

from .classes import ParserContext

# Patterns for block detection; project and report ids are optional in TaskJuggler.
BLOCK_PATTERNS = [
    ("project", re.compile(rf"^\s*project\b(?:\s+({IDENTIFIER}))?")),
    ("task", re.compile(rf"^\s*task\s+({IDENTIFIER})")),
    ("resource", re.compile(rf"^\s*resource\s+({IDENTIFIER})")),
    ("account", re.compile(rf"^\s*account\s+({IDENTIFIER})")),
    ("report", re.compile(rf"^\s*(?:{'|'.join(REPORT_KEYWORDS)})\b(?:\s+({IDENTIFIER}))?")),
]

ATTRIBUTE_REGEX = re.compile(rf"^({IDENTIFIER})(?=\s|$)")
CLOSING_ONLY_REGEX = re.compile(r"^\s*}[\s}]*$")


class _Block(NamedTuple):
    kind: Optional[str]  # None for anonymous braces such as 'limits {'
    id: Optional[str]
    start_line: int


def _match_block(code: str):
    for kind, pattern in BLOCK_PATTERNS:
        match = pattern.match(code)
        if match:
            return kind, match.group(1)
    return None


def context_at(text: str, position: Position) -> ParserContext:
    """
    Determines the block that encloses `position` by replaying the document
    from the top, and which attributes are already set in that block.

    Unbalanced braces never raise; the context simply degrades to a best guess.
    """
    lines = list(scan_lines(text))
    if not lines or position.line < 0:
        return ParserContext()
    last_line = min(position.line, len(lines) - 1)

    stack: List[_Block] = []
    for scanned in lines[: last_line + 1]:
        if scanned.is_comment:
            continue
        code = scanned.code
        opens, closes = code.count("{"), code.count("}")

        if CLOSING_ONLY_REGEX.match(code):
            for _ in range(closes):
                if stack:
                    stack.pop()
            continue

        if opens <= closes:
            continue

        block = _match_block(code)
        # Only the first unclosed brace of a line can belong to its keyword.
        extra = opens - closes
        if block:
            stack.append(_Block(block[0], block[1], scanned.index))
            extra -= 1
        for _ in range(extra):
            stack.append(_Block(None, None, scanned.index))

    named = [b for b in stack if b.kind is not None]
    if not named:
        return ParserContext()

    current = named[-1]
    context = ParserContext(
        block_kind=current.kind,
        block_id=current.id,
        block_start_line=current.start_line,
        parent_block_kinds=[b.kind for b in named],
    )

    # Collect attributes set at the block's own nesting level.
    depth = 0
    for scanned in lines[current.start_line + 1 : last_line + 1]:
        if scanned.is_comment:
            continue
        code = scanned.code.strip()
        if depth == 0 and "{" not in code:
            attr = ATTRIBUTE_REGEX.match(code)
            if attr:
                context.used_attribute_names.add(attr.group(1))
        depth = max(0, depth + code.count("{") - code.count("}"))

    return context
