"""
Location and line data structures shared by every analysis stage.

Coordinates are zero-based editor coordinates (line, character) and span
ends are exclusive, so a Span converts directly to an LSP Range.
"""

from typing import Optional

from pydantic import BaseModel


class Position(BaseModel):
    line: int
    character: int


class Span(BaseModel):
    """Represents a location in the source text for precise diagnostic placement."""

    s_line: int
    s_col: int
    e_line: int
    e_col: int
    file_path: Optional[str] = None

    @classmethod
    def on_line(cls, line: int, start: int, end: int) -> "Span":
        return cls(s_line=line, s_col=start, e_line=line, e_col=end)

    def contains(self, position: Position) -> bool:
        if position.line < self.s_line or position.line > self.e_line:
            return False
        if position.line == self.s_line and position.character < self.s_col:
            return False
        if position.line == self.e_line and position.character > self.e_col:
            return False
        return True


class ScannedLine(BaseModel):
    """
    One physical line of a document.

    `code` has the same length as `text`, with comment text, string contents
    and macro bodies replaced by spaces.
    """

    index: int
    text: str
    code: str
    is_comment: bool
