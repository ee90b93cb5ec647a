from typing import Dict, List, Optional, Tuple

from tjls.exceptions import ErrorCode
from tjls.parser.core.classes import SymbolTable
from tjls.parser.core.symbols import extract_symbols
from tjls.scanner.core.classes import Span
from tjls.scanner.core.scanner import scan_lines

from .classes import Diagnostic, Severity, make_diagnostic

# Kinds whose ids must be unique within a document.
UNIQUE_KINDS = ("task", "resource", "account")


def validate_braces(text: str) -> List[Diagnostic]:
    """
    Scans the code characters of the document and pairs up '{' and '}'.
    Braces inside strings, comments and macro bodies are never counted.
    """
    diagnostics = []
    open_braces: List[Tuple[int, int]] = []

    for scanned in scan_lines(text):
        for col, char in enumerate(scanned.code):
            if char == "{":
                open_braces.append((scanned.index, col))
            elif char == "}":
                if open_braces:
                    open_braces.pop()
                else:
                    diagnostics.append(
                        make_diagnostic(ErrorCode.UNMATCHED_CLOSING_BRACE, Span.on_line(scanned.index, col, col + 1))
                    )

    for line, col in open_braces:
        diagnostics.append(make_diagnostic(ErrorCode.UNCLOSED_BRACE, Span.on_line(line, col, col + 1)))

    return diagnostics


def validate_duplicate_ids(text: str, symbols: Optional[SymbolTable] = None) -> List[Diagnostic]:
    """
    Reports every repeated task, resource or account id, scanning definitions
    in document order.

    The repeated occurrence gets an Error pointing back at the first one, and
    the first occurrence gets a Warning pointing forward, once per repeat.
    """
    symbols = symbols if symbols is not None else extract_symbols(text)
    diagnostics = []
    first_seen: Dict[Tuple[str, str], Span] = {}

    for symbol in symbols.all():
        if symbol.kind not in UNIQUE_KINDS:
            continue
        original = first_seen.get((symbol.kind, symbol.id))
        if original is None:
            first_seen[(symbol.kind, symbol.id)] = symbol.id_span
            continue

        diagnostics.append(
            make_diagnostic(
                ErrorCode.DUPLICATE_ID,
                symbol.id_span,
                kind=symbol.kind,
                id=symbol.id,
                line=original.s_line + 1,
            )
        )
        diagnostics.append(
            make_diagnostic(
                ErrorCode.DUPLICATED_ORIGINAL,
                original,
                Severity.WARNING,
                kind=symbol.kind,
                kind_title=symbol.kind.title(),
                id=symbol.id,
                line=symbol.id_span.s_line + 1,
            )
        )

    return diagnostics
