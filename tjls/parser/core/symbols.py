import logging
from typing import Optional

from tjls.scanner.core.classes import Span

from .classes import SYMBOL_CLASSES, AnySymbol, SymbolTable
from .walker import walk_statements

logger = logging.getLogger(__name__)


def extract_symbols(text: str) -> SymbolTable:
    """
    Builds the symbol table of a document.

    Every definition occurrence is recorded, duplicates included. A task's
    parent is the innermost task still open when the task is defined, so the
    parent links always form a forest.
    """
    table = SymbolTable()

    for statement in walk_statements(text):
        definition = statement.definition
        if definition is None:
            continue

        fields = {
            "id": definition.id,
            "name": definition.name if definition.name is not None else definition.id,
            "span": Span.on_line(statement.line, 0, len(statement.line_text)),
            "id_span": Span.on_line(statement.line, definition.id_start, definition.id_start + len(definition.id)),
        }
        if definition.kind == "task":
            parent = statement.enclosing("task")
            fields["parent_id"] = parent.id if parent else None

        table.add(SYMBOL_CLASSES[definition.kind](**fields))

    logger.debug(
        "Extracted %d tasks, %d resources, %d accounts, %d scenarios, %d macros",
        len(table.tasks),
        len(table.resources),
        len(table.accounts),
        len(table.scenarios),
        len(table.macros),
    )
    return table


def find_symbol(text: str, symbol_id: str) -> Optional[AnySymbol]:
    """Finds a symbol by its id, searching tasks, resources, macros, scenarios and accounts in turn."""
    return extract_symbols(text).find(symbol_id)
