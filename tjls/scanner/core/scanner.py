from importlib.resources import files as pkg_files
from typing import Iterator, List

from lark import Lark

from .classes import ScannedLine

# Tokens whose text is not code. Their characters are blanked in `ScannedLine.code`.
COMMENT_TOKENS = {"BLOCK_COMMENT", "LINE_COMMENT"}
MACRO_TOKENS = {"MACRO_REF"}

# The path is relative to the 'tjls.scanner' subpackage
taskjuggler_grammar = (pkg_files("tjls.scanner") / "taskjuggler.lark").read_text()

# Only the lexer is used; the parser is never invoked.
LARK_LEXER = Lark(taskjuggler_grammar, start="start", parser="lalr", lexer="basic")


def split_lines(text: str) -> List[str]:
    """Splits a document into lines the way the editor numbers them."""
    return [line.rstrip("\r") for line in text.split("\n")]


def line_at(text: str, index: int) -> str:
    lines = split_lines(text)
    if 0 <= index < len(lines):
        return lines[index]
    return ""


def mask_text(text: str):
    """
    Returns `(code, commented)` for the whole document.

    `code` is `text` with comments, string contents and macro bodies replaced
    by spaces (newlines and quote characters are kept so that offsets and
    line numbers stay aligned). `commented` flags every offset that belongs to
    a comment token.
    """
    chars = list(text)
    commented = bytearray(len(text))

    for token in LARK_LEXER.lex(text):
        if token.type in COMMENT_TOKENS:
            lo, hi = token.start_pos, token.end_pos
            commented[lo:hi] = b"\x01" * (hi - lo)
        elif token.type == "STRING":
            lo, hi = token.start_pos + 1, token.end_pos - 1
        elif token.type == "SCISSORS_STRING":
            lo, hi = token.start_pos + 4, token.end_pos - 4
        elif token.type in MACRO_TOKENS:
            # Keep the '$' so date validators can still recognise a macro value.
            lo, hi = token.start_pos + 1, token.end_pos
        else:
            continue

        for i in range(lo, hi):
            if chars[i] != "\n":
                chars[i] = " "

    return "".join(chars), commented


def scan_lines(text: str) -> Iterator[ScannedLine]:
    """
    Lazily yields every line of the document together with its code-only view.

    A line is a comment line when it holds comment text and nothing else:
    a leading '#' or '//', a line opening a '/* ... */' block, or a
    continuation line inside such a block.
    """
    code, commented = mask_text(text)
    offset = 0
    for index, (raw, masked) in enumerate(zip(text.split("\n"), code.split("\n"))):
        line_len = len(raw)
        has_comment = any(commented[offset : offset + line_len])
        offset += line_len + 1

        raw = raw.rstrip("\r")
        masked = masked[: len(raw)]
        yield ScannedLine(index=index, text=raw, code=masked, is_comment=has_comment and not masked.strip())
