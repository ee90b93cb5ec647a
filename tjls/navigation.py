"""
Navigation and refactoring on top of the symbol model: word lookup,
go-to-definition, find-references, the document outline and rename.

All functions take the full document text and recompute what they need.
"""

import logging
import re
from typing import Dict, List, NamedTuple, Optional, Tuple

from pydantic import BaseModel

from tjls.config.config import REFERENCE_KINDS, VALID_IDENTIFIER_REGEX
from tjls.exceptions import ErrorCode, RenameError
from tjls.parser.core.classes import AnySymbol, Reference, Symbol, SymbolTable
from tjls.parser.core.references import extract_references
from tjls.parser.core.symbols import extract_symbols
from tjls.parser.core.walker import walk_statements
from tjls.scanner.core.classes import Position, Span
from tjls.scanner.core.scanner import line_at

logger = logging.getLogger(__name__)

WORD_REGEX = re.compile(r"[A-Za-z0-9_]+")

# Attributes summarised in the outline detail, in display order.
DETAIL_ATTRIBUTES = {
    "task": ("effort", "duration", "length", "allocate", "milestone"),
    "resource": ("rate", "efficiency"),
}


class TextEdit(BaseModel):
    span: Span
    new_text: str


class WorkspaceEdit(BaseModel):
    """A batch of edits to one document, applied together or not at all."""

    edits: List[TextEdit] = []

    def apply(self, text: str) -> str:
        lines = text.split("\n")
        # Apply right to left so earlier edits keep their columns.
        for edit in sorted(self.edits, key=lambda e: (e.span.s_line, e.span.s_col), reverse=True):
            line = lines[edit.span.s_line]
            lines[edit.span.s_line] = line[: edit.span.s_col] + edit.new_text + line[edit.span.e_col :]
        return "\n".join(lines)


class OutlineNode(BaseModel):
    symbol: Symbol
    detail: str
    children: List["OutlineNode"] = []


class _Target(NamedTuple):
    kind: str
    id: str
    span: Span  # the word under the cursor


def word_at(text: str, position: Position) -> Optional[Tuple[str, Span]]:
    """Returns the word touching the cursor and its span, or None between words."""
    line = line_at(text, position.line)
    for match in WORD_REGEX.finditer(line):
        if match.start() <= position.character <= match.end():
            return match.group(0), Span.on_line(position.line, match.start(), match.end())
    return None


def _resolve_target(text: str, position: Position, symbols: SymbolTable, references: List[Reference]) -> Optional[_Target]:
    """
    Works out which symbol the cursor designates.

    A reference or definition under the cursor decides the kind; otherwise the
    bare word is looked up in the symbol table.
    """
    word = word_at(text, position)
    if word is None:
        return None
    name, span = word

    for ref in references:
        if ref.span.contains(position):
            return _Target(ref.kind, ref.target_id, ref.span)
    for symbol in symbols.all():
        if symbol.id_span.contains(position):
            return _Target(symbol.kind, symbol.id, symbol.id_span)

    symbol = symbols.find(name)
    if symbol is not None:
        return _Target(symbol.kind, symbol.id, span)
    return None


def find_definition(text: str, position: Position) -> Optional[AnySymbol]:
    symbols = extract_symbols(text)
    target = _resolve_target(text, position, symbols, extract_references(text))
    if target is None:
        return None
    return symbols.find(target.id, kind=target.kind)


def find_references(text: str, position: Position, include_declaration: bool = True) -> List[Span]:
    """Every use of the symbol under the cursor, optionally with its definition sites, in document order."""
    symbols = extract_symbols(text)
    references = extract_references(text)
    target = _resolve_target(text, position, symbols, references)
    if target is None:
        return []
    return _occurrences(target, symbols, references, include_declaration)


def _occurrences(target: _Target, symbols: SymbolTable, references: List[Reference], include_declaration: bool) -> List[Span]:
    spans = []
    if include_declaration:
        spans.extend(s.id_span for s in symbols.of_kind(target.kind) if s.id == target.id)
    spans.extend(r.span for r in references if r.kind == target.kind and r.target_id == target.id)
    spans.sort(key=lambda s: (s.s_line, s.s_col))
    return spans


def prepare_rename(text: str, position: Position) -> Optional[Span]:
    """Returns the span to rename when the cursor is on a defined task, resource or account."""
    symbols = extract_symbols(text)
    target = _resolve_target(text, position, symbols, extract_references(text))
    if target is None or target.kind not in REFERENCE_KINDS or not symbols.has(target.kind, target.id):
        return None
    return target.span


def rename_symbol(text: str, position: Position, new_name: str) -> WorkspaceEdit:
    """
    Renames the task, resource or account under the cursor.

    The edit replaces every definition of the symbol and every reference to
    it. Raises RenameError, and produces no edit, when the cursor is not on a
    renameable symbol, when `new_name` is not a valid identifier or when
    `new_name` is already used by any symbol of the document.
    """
    symbols = extract_symbols(text)
    references = extract_references(text)
    target = _resolve_target(text, position, symbols, references)

    if target is None or target.kind not in REFERENCE_KINDS or not symbols.has(target.kind, target.id):
        word = word_at(text, position)
        raise RenameError(ErrorCode.NOT_RENAMEABLE, name=word[0] if word else "")
    if not VALID_IDENTIFIER_REGEX.match(new_name):
        raise RenameError(ErrorCode.INVALID_IDENTIFIER, name=new_name)
    if new_name in symbols.ids():
        raise RenameError(ErrorCode.NAME_ALREADY_EXISTS, name=new_name)

    spans = _occurrences(target, symbols, references, include_declaration=True)
    logger.debug("Renaming %s '%s' to '%s' at %d locations", target.kind, target.id, new_name, len(spans))
    return WorkspaceEdit(edits=[TextEdit(span=span, new_text=new_name) for span in spans])


# --- Outline ---


def _block_attributes(text: str) -> Dict[Tuple[int, str], Dict[str, str]]:
    """Maps (definition line, id) of every open block to the attributes set directly inside it."""
    attributes: Dict[Tuple[int, str], Dict[str, str]] = {}
    for statement in walk_statements(text):
        if not statement.frames or not statement.code.strip():
            continue
        frame = statement.frames[-1]
        if frame.depth != statement.depth - 1:
            continue
        parts = statement.text.strip().split(None, 1)
        block = attributes.setdefault((frame.line, frame.id), {})
        block.setdefault(parts[0], parts[1].strip() if len(parts) > 1 else "")
    return attributes


def _detail(symbol: AnySymbol, attributes: Dict[str, str]) -> str:
    parts = []
    for name in DETAIL_ATTRIBUTES.get(symbol.kind, ()):
        if name in attributes:
            value = attributes[name]
            parts.append(f"{name} {value}" if value else name)
    return ", ".join(parts) or symbol.kind


def build_outline(text: str) -> List[OutlineNode]:
    """
    Builds the document outline: tasks nested under their parents, followed
    by resources, accounts and scenarios.
    """
    symbols = extract_symbols(text)
    attributes = _block_attributes(text)

    def node(symbol: AnySymbol) -> OutlineNode:
        return OutlineNode(symbol=symbol, detail=_detail(symbol, attributes.get((symbol.span.s_line, symbol.id), {})))

    roots: List[OutlineNode] = []
    task_nodes: Dict[str, OutlineNode] = {}
    for task in symbols.tasks:
        task_node = node(task)
        task_nodes.setdefault(task.id, task_node)
        parent = task_nodes.get(task.parent_id) if task.parent_id else None
        if parent is not None:
            parent.children.append(task_node)
        else:
            roots.append(task_node)

    for symbol in [*symbols.resources, *symbols.accounts, *symbols.scenarios]:
        roots.append(node(symbol))
    return roots
