from typing import Dict, List, Optional

from tjls.exceptions import ErrorCode
from tjls.parser.core.classes import DependencyGraph, Reference, SymbolTable
from tjls.parser.core.references import dependency_graph, extract_references
from tjls.parser.core.symbols import extract_symbols
from tjls.scanner.core.classes import Span

from .classes import Diagnostic, make_diagnostic


class SemanticValidator:
    """
    Cross-checks references against the symbol table and looks for cycles in
    the task dependency graph.

    Unlike a compiler stage it never raises on a rule violation: every
    problem becomes a diagnostic and the rest of the document is still checked.
    """

    def __init__(self, text: str, symbols: Optional[SymbolTable] = None, references: Optional[List[Reference]] = None):
        self.text = text
        self.symbols = symbols if symbols is not None else extract_symbols(text)
        self.references = references if references is not None else extract_references(text)

    def validate_references(self) -> List[Diagnostic]:
        """Reports every task, resource or account reference that has no definition."""
        diagnostics = []
        for ref in self.references:
            if not self.symbols.has(ref.kind, ref.target_id):
                diagnostics.append(
                    make_diagnostic(ErrorCode.UNDEFINED_REFERENCE, ref.span, kind=ref.kind, id=ref.target_id, context=ref.context)
                )
        return diagnostics

    def validate_circular_dependencies(self) -> List[Diagnostic]:
        """
        Reports the first cycle in the `depends` graph.

        Only one cycle is reported per pass; a graph with several independent
        cycles shows the others once the first one is fixed.
        """
        graph = dependency_graph(self.references)
        cycle = find_first_cycle(graph)
        if not cycle:
            return []

        span = self._task_span(cycle[0])
        return [make_diagnostic(ErrorCode.CIRCULAR_DEPENDENCY, span, path=" → ".join(cycle))]

    def _task_span(self, task_id: str) -> Span:
        task = self.symbols.find(task_id, kind="task")
        if task:
            return task.id_span
        # No definition, e.g. only supplemented: point at its first outgoing dependency.
        ref = next(r for r in self.references if r.owner_id == task_id and r.context == "depends" and not r.path_prefix)
        return ref.span


def find_first_cycle(graph: DependencyGraph) -> Optional[List[str]]:
    """
    Depth-first search from every unvisited key in insertion order.

    Returns the cycle as a path that starts and ends with the same task, e.g.
    ['a', 'b', 'a'], or None for an acyclic graph. The walk keeps its own
    stack, so dependency chains of any length are searched.
    """
    visited = set()
    on_path: Dict[str, int] = {}
    path: List[str] = []

    def enter(task_id: str, stack: list):
        visited.add(task_id)
        on_path[task_id] = len(path)
        path.append(task_id)
        stack.append((task_id, iter(graph.get(task_id, []))))

    for root in graph:
        if root in visited:
            continue

        stack = []
        enter(root, stack)
        while stack:
            task_id, dependees = stack[-1]
            dependee = next(dependees, None)
            if dependee is None:
                stack.pop()
                path.pop()
                del on_path[task_id]
            elif dependee in on_path:
                return path[on_path[dependee] :] + [dependee]
            elif dependee not in visited:
                enter(dependee, stack)
    return None


def validate_references(text: str) -> List[Diagnostic]:
    return SemanticValidator(text).validate_references()


def validate_circular_dependencies(text: str) -> List[Diagnostic]:
    return SemanticValidator(text).validate_circular_dependencies()
