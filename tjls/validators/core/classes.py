from enum import IntEnum

from pydantic import BaseModel

from tjls.config.config import DIAGNOSTIC_SOURCE
from tjls.exceptions import ErrorCode
from tjls.scanner.core.classes import Span


class Severity(IntEnum):
    # Same numbering as the Language Server Protocol.
    ERROR = 1
    WARNING = 2


class Diagnostic(BaseModel):
    span: Span
    message: str
    severity: Severity
    code: str
    source: str = DIAGNOSTIC_SOURCE


def make_diagnostic(error: ErrorCode, span: Span, severity: Severity = Severity.ERROR, **kwargs) -> Diagnostic:
    """Builds a diagnostic whose code and message come from the `ErrorCode` templates."""
    return Diagnostic(
        span=span,
        message=error.format_message(**kwargs),
        severity=severity,
        code=error.format_code(**kwargs),
    )
