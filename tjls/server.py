import asyncio
import logging
import os
import re
import threading
from pathlib import Path
from typing import Callable, List, Optional
from urllib.parse import unquote, urlparse

from lsprotocol.types import (
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DEFINITION,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_DID_SAVE,
    TEXT_DOCUMENT_DOCUMENT_SYMBOL,
    TEXT_DOCUMENT_PREPARE_RENAME,
    TEXT_DOCUMENT_REFERENCES,
    TEXT_DOCUMENT_RENAME,
    WORKSPACE_SYMBOL,
    CompletionItem,
    CompletionItemKind,
    CompletionList,
    CompletionParams,
    DefinitionParams,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DidSaveTextDocumentParams,
    DocumentSymbol,
    DocumentSymbolParams,
    Location,
    MessageType,
    Position,
    PrepareRenameParams,
    PublishDiagnosticsParams,
    Range,
    ReferenceParams,
    RenameParams,
    ShowMessageParams,
    SymbolInformation,
    SymbolKind,
    TextEdit,
    WorkspaceEdit,
    WorkspaceSymbolParams,
)
from pygls.lsp.server import LanguageServer

from tjls.analysis import analyze_document
from tjls.config.config import BLOCK_ATTRIBUTES, DIAGNOSTIC_SOURCE, TOP_LEVEL_KEYWORDS
from tjls.exceptions import RenameError
from tjls.navigation import OutlineNode, build_outline, find_definition, find_references, prepare_rename, rename_symbol
from tjls.parser.core.context import context_at
from tjls.parser.core.symbols import extract_symbols
from tjls.scanner.core import classes as scanner_classes
from tjls.scanner.core.scanner import line_at
from tjls.validators.core import classes as validator_classes
from tjls.workspace import search_workspace_symbols

logger = logging.getLogger(__name__)

server = LanguageServer("taskjuggler-language-server", "v0.1.0")

LSP_SYMBOL_KINDS = {
    "task": SymbolKind.Function,
    "resource": SymbolKind.Class,
    "account": SymbolKind.Enum,
    "scenario": SymbolKind.Namespace,
    "macro": SymbolKind.Constant,
}

# A cursor right after 'depends a, b, ' or 'allocate dev, ' expects another id.
DEPENDS_PREFIX_REGEX = re.compile(r"\b(?:depends|precedes|follows)\s+(?:!*[\w.]+\s*,\s*)*!*[\w.]*$")
ALLOCATE_PREFIX_REGEX = re.compile(r"\b(?:allocate|responsible)\s+(?:\w+\s*,\s*)*\w*$")


class SearchGenerations:
    """
    Numbers workspace symbol searches. Starting a search supersedes the ones
    still running, which stop before their next file.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._current = 0

    def start(self) -> Callable[[], bool]:
        with self._lock:
            self._current += 1
            generation = self._current
        return lambda: self._current != generation


workspace_searches = SearchGenerations()


def _uri_to_path(uri: str) -> str:
    """Converts a file URI to a platform-specific file path."""
    parsed = urlparse(uri)
    return os.path.abspath(unquote(parsed.path))


def _path_to_uri(path: str) -> str:
    """Converts a platform-specific file path to a file URI."""
    return Path(path).as_uri()


def _position(position: Position) -> scanner_classes.Position:
    return scanner_classes.Position(line=position.line, character=position.character)


def to_lsp_range(span: scanner_classes.Span) -> Range:
    return Range(
        start=Position(line=span.s_line, character=span.s_col),
        end=Position(line=span.e_line, character=span.e_col),
    )


def to_lsp_diagnostic(diagnostic: validator_classes.Diagnostic) -> Diagnostic:
    return Diagnostic(
        range=to_lsp_range(diagnostic.span),
        message=diagnostic.message,
        severity=DiagnosticSeverity(int(diagnostic.severity)),
        code=diagnostic.code,
        source=diagnostic.source,
    )


def to_document_symbol(node: OutlineNode) -> DocumentSymbol:
    symbol = node.symbol
    return DocumentSymbol(
        name=f"{symbol.id} - {symbol.name}",
        detail=node.detail,
        kind=LSP_SYMBOL_KINDS[symbol.kind],
        range=to_lsp_range(symbol.span),
        selection_range=to_lsp_range(symbol.id_span),
        children=[to_document_symbol(child) for child in node.children],
    )


def completion_items(text: str, position: scanner_classes.Position) -> List[CompletionItem]:
    """
    Context-aware completions: task ids after a dependency keyword, resource
    ids after 'allocate', and otherwise the attributes of the enclosing
    block that are not set yet.
    """
    prefix = line_at(text, position.line)[: position.character]

    if DEPENDS_PREFIX_REGEX.search(prefix):
        tasks = {t.id: t for t in reversed(extract_symbols(text).tasks)}
        return [CompletionItem(label=t.id, kind=CompletionItemKind.Reference, detail=t.name) for t in sorted(tasks.values(), key=lambda t: t.id)]

    if ALLOCATE_PREFIX_REGEX.search(prefix):
        resources = {r.id: r for r in reversed(extract_symbols(text).resources)}
        return [CompletionItem(label=r.id, kind=CompletionItemKind.Reference, detail=r.name) for r in sorted(resources.values(), key=lambda r: r.id)]

    context = context_at(text, position)
    if context.block_kind == "none":
        return [CompletionItem(label=k, kind=CompletionItemKind.Keyword) for k in TOP_LEVEL_KEYWORDS]

    return [
        CompletionItem(label=attr, kind=CompletionItemKind.Property, detail=f"{context.block_kind} attribute")
        for attr in BLOCK_ATTRIBUTES[context.block_kind]
        if attr not in context.used_attribute_names
    ]


def _validate(ls: LanguageServer, uri: str):
    document = ls.workspace.get_text_document(uri)
    diagnostics = analyze_document(document.source, file_path=_uri_to_path(uri))
    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=[to_lsp_diagnostic(d) for d in diagnostics])
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams):
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams):
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_SAVE)
def did_save(ls: LanguageServer, params: DidSaveTextDocumentParams):
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CLOSE)
def did_close(ls: LanguageServer, params: DidCloseTextDocumentParams):
    ls.text_document_publish_diagnostics(PublishDiagnosticsParams(uri=params.text_document.uri, diagnostics=[]))


@server.feature(TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(ls: LanguageServer, params: DocumentSymbolParams) -> List[DocumentSymbol]:
    document = ls.workspace.get_text_document(params.text_document.uri)
    return [to_document_symbol(node) for node in build_outline(document.source)]


@server.feature(WORKSPACE_SYMBOL)
async def workspace_symbol(ls: LanguageServer, params: WorkspaceSymbolParams) -> List[SymbolInformation]:
    root = ls.workspace.root_path
    if not root:
        return []
    is_cancelled = workspace_searches.start()
    found_symbols = await asyncio.to_thread(search_workspace_symbols, root, params.query, is_cancelled)
    return [
        SymbolInformation(
            name=found.symbol.id,
            kind=LSP_SYMBOL_KINDS[found.symbol.kind],
            location=Location(uri=_path_to_uri(found.file_path), range=to_lsp_range(found.symbol.id_span)),
            container_name=found.symbol.name,
        )
        for found in found_symbols
    ]


@server.feature(TEXT_DOCUMENT_DEFINITION)
def definition(ls: LanguageServer, params: DefinitionParams) -> Optional[Location]:
    document = ls.workspace.get_text_document(params.text_document.uri)
    symbol = find_definition(document.source, _position(params.position))
    if symbol is None:
        return None
    return Location(uri=params.text_document.uri, range=to_lsp_range(symbol.id_span))


@server.feature(TEXT_DOCUMENT_REFERENCES)
def references(ls: LanguageServer, params: ReferenceParams) -> List[Location]:
    document = ls.workspace.get_text_document(params.text_document.uri)
    spans = find_references(document.source, _position(params.position), params.context.include_declaration)
    return [Location(uri=params.text_document.uri, range=to_lsp_range(span)) for span in spans]


@server.feature(TEXT_DOCUMENT_PREPARE_RENAME)
def prepare_rename_request(ls: LanguageServer, params: PrepareRenameParams) -> Optional[Range]:
    document = ls.workspace.get_text_document(params.text_document.uri)
    span = prepare_rename(document.source, _position(params.position))
    return to_lsp_range(span) if span else None


@server.feature(TEXT_DOCUMENT_RENAME)
def rename(ls: LanguageServer, params: RenameParams) -> Optional[WorkspaceEdit]:
    document = ls.workspace.get_text_document(params.text_document.uri)
    try:
        edit = rename_symbol(document.source, _position(params.position), params.new_name)
    except RenameError as e:
        ls.window_show_message(ShowMessageParams(type=MessageType.Error, message=e.user_message))
        return None

    text_edits = [TextEdit(range=to_lsp_range(e.span), new_text=e.new_text) for e in edit.edits]
    return WorkspaceEdit(changes={params.text_document.uri: text_edits})


@server.feature(TEXT_DOCUMENT_COMPLETION)
def completions(ls: LanguageServer, params: CompletionParams) -> CompletionList:
    document = ls.workspace.get_text_document(params.text_document.uri)
    items = completion_items(document.source, _position(params.position))
    return CompletionList(items=items, is_incomplete=False)


def start_server():
    logger.info("Starting %s language server on stdio", DIAGNOSTIC_SOURCE)
    server.start_io()


if __name__ == "__main__":
    start_server()
