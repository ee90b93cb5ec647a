"""
Defines the formal data structures (contracts) produced by the parser stage:
symbols, references and the block context at a cursor position.

Symbols are a closed tagged union discriminated on `kind`, so code that
dispatches on the kind of a symbol can rely on the field set of each variant.
"""

from typing import Annotated, Dict, Iterator, List, Literal, Optional, Set, Union

from pydantic import BaseModel, Field

from tjls.scanner.core.classes import Span

SymbolKindName = Literal["task", "resource", "account", "scenario", "macro"]
ReferenceKind = Literal["task", "resource", "account"]
ReferenceContext = Literal[
    "depends",
    "precedes",
    "follows",
    "supplement",
    "allocate",
    "responsible",
    "shifts",
    "charge",
    "chargeset",
    "revenue",
    "purge",
]
BlockKind = Literal["project", "task", "resource", "account", "report", "none"]


# --- Symbols ---


class SymbolBase(BaseModel):
    """A definition site. `span` covers the full defining line, `id_span` only the identifier."""

    id: str
    name: str
    span: Span
    id_span: Span


class TaskSymbol(SymbolBase):
    kind: Literal["task"] = "task"
    parent_id: Optional[str] = None


class ResourceSymbol(SymbolBase):
    kind: Literal["resource"] = "resource"


class AccountSymbol(SymbolBase):
    kind: Literal["account"] = "account"


class ScenarioSymbol(SymbolBase):
    kind: Literal["scenario"] = "scenario"


class MacroSymbol(SymbolBase):
    kind: Literal["macro"] = "macro"


AnySymbol = Union[TaskSymbol, ResourceSymbol, AccountSymbol, ScenarioSymbol, MacroSymbol]
Symbol = Annotated[AnySymbol, Field(discriminator="kind")]

SYMBOL_CLASSES = {
    "task": TaskSymbol,
    "resource": ResourceSymbol,
    "account": AccountSymbol,
    "scenario": ScenarioSymbol,
    "macro": MacroSymbol,
}


class SymbolTable(BaseModel):
    """All definitions of one document, one list per kind, in document order."""

    tasks: List[TaskSymbol] = []
    resources: List[ResourceSymbol] = []
    accounts: List[AccountSymbol] = []
    scenarios: List[ScenarioSymbol] = []
    macros: List[MacroSymbol] = []

    def of_kind(self, kind: str) -> List[AnySymbol]:
        return {
            "task": self.tasks,
            "resource": self.resources,
            "account": self.accounts,
            "scenario": self.scenarios,
            "macro": self.macros,
        }[kind]

    def add(self, symbol: AnySymbol):
        self.of_kind(symbol.kind).append(symbol)

    def all(self) -> Iterator[AnySymbol]:
        """Yields every symbol in document order."""
        merged = [*self.tasks, *self.resources, *self.accounts, *self.scenarios, *self.macros]
        return iter(sorted(merged, key=lambda s: (s.span.s_line, s.id_span.s_col)))

    def find(self, symbol_id: str, kind: Optional[str] = None) -> Optional[AnySymbol]:
        kinds = [kind] if kind else ["task", "resource", "macro", "scenario", "account"]
        for k in kinds:
            for symbol in self.of_kind(k):
                if symbol.id == symbol_id:
                    return symbol
        return None

    def has(self, kind: str, symbol_id: str) -> bool:
        return any(s.id == symbol_id for s in self.of_kind(kind))

    def ids(self) -> Set[str]:
        return {s.id for s in self.all()}


# --- References ---


class Reference(BaseModel):
    """
    A use of an identifier that points at a task, resource or account.

    The reference is weak: it is resolved against the symbol table only at
    validation time. `owner_id` is the innermost enclosing task (or resource,
    for resource-level statements) at the reference site.

    In a dotted path such as `p.c` every component is a reference of its own;
    the leading ones carry `path_prefix` and name ancestors, not the
    dependency itself.
    """

    target_id: str
    kind: ReferenceKind
    span: Span
    context: ReferenceContext
    negated: bool = False
    owner_id: Optional[str] = None
    path_prefix: bool = False


# Adjacency map of `depends` edges: depender -> dependees (an ordered set).
DependencyGraph = Dict[str, List[str]]


# --- Block Context ---


class ParserContext(BaseModel):
    block_kind: BlockKind = "none"
    block_id: Optional[str] = None
    block_start_line: int = 0
    parent_block_kinds: List[str] = []
    used_attribute_names: Set[str] = set()
