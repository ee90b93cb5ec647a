from typing import Optional

from tjls.parser.core.classes import (
    AccountSymbol,
    Reference,
    ResourceSymbol,
    ScenarioSymbol,
    TaskSymbol,
)
from tjls.scanner.core.classes import Span


def get_span(line: int, start: int, end: int) -> Span:
    return Span.on_line(line, start, end)


def get_line_span(line: int, text: str) -> Span:
    return Span.on_line(line, 0, len(text))


def get_task(id: str, line: int, col: int, line_text: str, name: Optional[str] = None, parent_id: Optional[str] = None):
    return TaskSymbol(
        id=id,
        name=name if name is not None else id,
        span=get_line_span(line, line_text),
        id_span=get_span(line, col, col + len(id)),
        parent_id=parent_id,
    )


def get_resource(id: str, name: str, line: int, col: int, line_text: str):
    return ResourceSymbol(id=id, name=name, span=get_line_span(line, line_text), id_span=get_span(line, col, col + len(id)))


def get_account(id: str, name: str, line: int, col: int, line_text: str):
    return AccountSymbol(id=id, name=name, span=get_line_span(line, line_text), id_span=get_span(line, col, col + len(id)))


def get_scenario(id: str, name: str, line: int, col: int, line_text: str):
    return ScenarioSymbol(id=id, name=name, span=get_line_span(line, line_text), id_span=get_span(line, col, col + len(id)))


def get_reference(
    target_id: str,
    kind: str,
    context: str,
    line: int,
    col: int,
    negated: bool = False,
    owner_id: Optional[str] = None,
    path_prefix: bool = False,
):
    return Reference(
        target_id=target_id,
        kind=kind,
        span=get_span(line, col, col + len(target_id)),
        context=context,
        negated=negated,
        owner_id=owner_id,
        path_prefix=path_prefix,
    )
