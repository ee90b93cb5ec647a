"""
Diagnostic codes, message templates and exception types for the TaskJuggler
language tools.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from tjls.scanner.core.classes import Span


class ErrorCode(Enum):
    """Each member holds ``(code, message_template)``; the code itself may be a template."""

    # --- Semantic Errors ---
    UNDEFINED_REFERENCE = ("undefined-reference", "Undefined {kind} '{id}' referenced in {context}")
    CIRCULAR_DEPENDENCY = ("circular-dependency", "Circular dependency detected: {path}")

    # --- Syntax Errors ---
    UNMATCHED_CLOSING_BRACE = ("unmatched-closing-brace", "Unexpected closing brace - no matching opening brace")
    UNCLOSED_BRACE = ("unclosed-brace", "Unclosed brace - missing closing brace")
    DUPLICATE_ID = ("duplicate-{kind}-id", "Duplicate {kind} ID '{id}' - already defined at line {line}")
    DUPLICATED_ORIGINAL = ("duplicate-{kind}-id", "{kind_title} ID '{id}' is duplicated at line {line}")

    # --- Date Errors ---
    INVALID_DATE_FORMAT = ("invalid-date-format", "Invalid date format. Expected YYYY-MM-DD, got: {text}")
    INVALID_DATE_VALUE = ("invalid-date-value", "Invalid date: {text} (e.g., month must be 01-12, day must be valid for month)")
    INVALID_DATE_RANGE = ("invalid-date-range", "End date ({end}) must be after start date ({start})")
    INVALID_CONSTRAINT_RANGE = ("invalid-constraint-range", "{max_attr} ({max_date}) must be after {min_attr} ({min_date})")

    # --- Rename Errors ---
    NOT_RENAMEABLE = ("not-renameable", "'{name}' is not a task, resource or account defined in this document.")
    INVALID_IDENTIFIER = ("invalid-identifier", "Invalid identifier: {name}. Must start with letter or underscore.")
    NAME_ALREADY_EXISTS = ("name-already-exists", "Cannot rename: {name} already exists.")

    @property
    def code(self) -> str:
        return self.value[0]

    def format_code(self, **kwargs) -> str:
        return self.value[0].format(**kwargs)

    def format_message(self, **kwargs) -> str:
        return self.value[1].format(**kwargs)


class TaskJugglerError(Exception):
    """An operation on a document was rejected. Analysis itself never raises this."""

    def __init__(
        self,
        code: ErrorCode,
        span: Optional["Span"] = None,
        file_path: Optional[str] = None,
        **kwargs,
    ):
        self.code = code
        self.span = span
        self.details = kwargs

        core_message = code.format_message(**kwargs)

        location_prefix = ""
        if span and file_path:
            location_prefix = f"Error in '{file_path}' (Line: {span.s_line + 1}, Column: {span.s_col + 1}): "
        elif file_path:
            location_prefix = f"Error in '{file_path}': "

        self.user_message = core_message
        self.message = location_prefix + core_message

        super().__init__(self.message)


class RenameError(TaskJugglerError):
    pass
