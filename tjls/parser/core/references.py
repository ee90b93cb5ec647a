"""
Reference graph builder.

References are searched for inside each statement's code view (comments and
strings blanked out), with word-boundary patterns that are not anchored to
the start of the line because these attributes live inside blocks.
"""

import re
from typing import Iterable, List, Optional

from tjls.config.config import IDENTIFIER, REFERENCE_LIST_KEYWORDS, RESERVED_KEYWORDS
from tjls.scanner.core.classes import Span

from .classes import DependencyGraph, Reference
from .walker import Statement, walk_statements

ID_PATH = rf"!*{IDENTIFIER}(?:\.{IDENTIFIER})*"

LIST_REFERENCE_REGEX = re.compile(
    rf"\b({'|'.join(REFERENCE_LIST_KEYWORDS)})\s+({ID_PATH}(?:\s*,\s*{ID_PATH})*)"
)
LIST_ITEM_REGEX = re.compile(rf"(!*)({IDENTIFIER}(?:\.{IDENTIFIER})*)")
SUPPLEMENT_REGEX = re.compile(rf"\bsupplement\s+(task|resource)\s+({IDENTIFIER})\b")
CHARGE_REGEX = re.compile(rf"\bcharge\s+[-+]?\d+(?:\.\d+)?\s+({IDENTIFIER})\b")
ACCOUNT_REGEX = re.compile(rf"\b(chargeset|revenue|purge)\s+({IDENTIFIER})\b")


def _owner(statement: Statement, kind: str) -> Optional[str]:
    if kind == "task":
        frame = statement.enclosing("task")
    else:
        frame = next((f for f in reversed(statement.frames) if f.kind in ("task", "resource")), None)
    return frame.id if frame else None


def _span(statement: Statement, start: int, length: int) -> Span:
    col = statement.column + start
    return Span.on_line(statement.line, col, col + length)


def _references_in_statement(statement: Statement) -> Iterable[Reference]:
    code = statement.code

    for match in LIST_REFERENCE_REGEX.finditer(code):
        kind, context = REFERENCE_LIST_KEYWORDS[match.group(1)]
        owner = _owner(statement, kind)
        for item in LIST_ITEM_REGEX.finditer(match.group(2)):
            # A dotted path names a nested task; the last component is its own id.
            components = item.group(2).split(".")
            start = match.start(2) + item.start(2)
            for index, component in enumerate(components):
                yield Reference(
                    target_id=component,
                    kind=kind,
                    span=_span(statement, start, len(component)),
                    context=context,
                    negated=bool(item.group(1)),
                    owner_id=owner,
                    path_prefix=index < len(components) - 1,
                )
                start += len(component) + 1

    for match in SUPPLEMENT_REGEX.finditer(code):
        kind = match.group(1)
        yield Reference(
            target_id=match.group(2),
            kind=kind,
            span=_span(statement, match.start(2), len(match.group(2))),
            context="supplement",
            owner_id=_owner(statement, kind),
        )

    for match in CHARGE_REGEX.finditer(code):
        target = match.group(1)
        if target in RESERVED_KEYWORDS:
            continue
        yield Reference(
            target_id=target,
            kind="account",
            span=_span(statement, match.start(1), len(target)),
            context="charge",
            owner_id=_owner(statement, "account"),
        )

    for match in ACCOUNT_REGEX.finditer(code):
        target = match.group(2)
        if target in RESERVED_KEYWORDS:
            continue
        yield Reference(
            target_id=target,
            kind="account",
            span=_span(statement, match.start(2), len(target)),
            context=match.group(1),
            owner_id=_owner(statement, "account"),
        )


def extract_references(text: str) -> List[Reference]:
    """Extracts every task, resource and account reference, ordered by position."""
    references = [ref for statement in walk_statements(text) for ref in _references_in_statement(statement)]
    references.sort(key=lambda r: (r.span.s_line, r.span.s_col))
    return references


def dependency_graph(references: List[Reference]) -> DependencyGraph:
    """
    Builds the adjacency map of `depends` edges (depender -> dependee).
    Keys and dependees keep first-seen order, which fixes the order of cycle
    detection.
    """
    graph: DependencyGraph = {}
    for ref in references:
        if ref.context != "depends" or ref.owner_id is None or ref.path_prefix:
            continue
        dependees = graph.setdefault(ref.owner_id, [])
        if ref.target_id not in dependees:
            dependees.append(ref.target_id)
    return graph
