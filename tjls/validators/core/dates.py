import datetime
import re
from typing import Dict, Iterator, List, NamedTuple, Tuple

from tjls.config.config import DATE_ATTRIBUTES
from tjls.exceptions import ErrorCode
from tjls.parser.core.walker import walk_statements
from tjls.scanner.core.classes import Span

from .classes import Diagnostic, Severity, make_diagnostic

DATE_ATTRIBUTE_REGEX = re.compile(rf"\b({'|'.join(DATE_ATTRIBUTES)})\s+(\S+)", re.IGNORECASE)
DATE_FORMAT_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# (min attribute, max attribute, severity of a violated pair)
CONSTRAINT_PAIRS = [
    ("start", "end", Severity.ERROR),
    ("minstart", "maxstart", Severity.WARNING),
    ("minend", "maxend", Severity.WARNING),
]


class DateValue(NamedTuple):
    attribute: str
    text: str
    span: Span
    owner: Tuple[str, int]  # (task id, defining line) of the enclosing task, or ('', -1)


def _date_values(text: str) -> Iterator[DateValue]:
    for statement in walk_statements(text):
        frame = statement.enclosing("task")
        owner = (frame.id, frame.line) if frame else ("", -1)
        for match in DATE_ATTRIBUTE_REGEX.finditer(statement.code):
            start = statement.column + match.start(2)
            value = statement.text[match.start(2) : match.end(2)]
            yield DateValue(
                attribute=match.group(1).lower(),
                text=value,
                span=Span.on_line(statement.line, start, start + len(value)),
                owner=owner,
            )


def parse_date(text: str) -> datetime.date:
    """
    Parses a strict YYYY-MM-DD literal.

    Raises ValueError for a malformed literal and for a date that does not
    exist on the calendar, such as 2024-02-30.
    """
    if not DATE_FORMAT_REGEX.match(text):
        raise ValueError(f"not a YYYY-MM-DD date: {text}")
    year, month, day = (int(part) for part in text.split("-"))
    return datetime.date(year, month, day)


def validate_date_format(value: str, span: Span):
    """Returns a diagnostic for a malformed or impossible date literal, or None."""
    if not DATE_FORMAT_REGEX.match(value):
        return make_diagnostic(ErrorCode.INVALID_DATE_FORMAT, span, text=value)
    try:
        parse_date(value)
    except ValueError:
        return make_diagnostic(ErrorCode.INVALID_DATE_VALUE, span, text=value)
    return None


def validate_date_logic(text: str) -> List[Diagnostic]:
    """
    Checks that end follows start, maxstart follows minstart and maxend
    follows minend within every task.

    Each task collects only the attributes set directly in its own block;
    when an attribute is repeated, the last value wins. Values that are not
    valid dates are left to the format check.
    """
    owners: Dict[Tuple[str, int], Dict[str, Tuple[datetime.date, DateValue]]] = {}
    for value in _date_values(text):
        if not value.owner[0]:
            continue
        try:
            parsed = parse_date(value.text)
        except ValueError:
            continue
        owners.setdefault(value.owner, {})[value.attribute] = (parsed, value)

    diagnostics = []
    for dates in owners.values():
        for min_attr, max_attr, severity in CONSTRAINT_PAIRS:
            if min_attr not in dates or max_attr not in dates:
                continue
            min_date, min_value = dates[min_attr]
            max_date, max_value = dates[max_attr]
            if max_date > min_date:
                continue

            if min_attr == "start":
                diagnostic = make_diagnostic(
                    ErrorCode.INVALID_DATE_RANGE, max_value.span, severity, end=max_value.text, start=min_value.text
                )
            else:
                diagnostic = make_diagnostic(
                    ErrorCode.INVALID_CONSTRAINT_RANGE,
                    max_value.span,
                    severity,
                    max_attr=max_attr,
                    max_date=max_value.text,
                    min_attr=min_attr,
                    min_date=min_value.text,
                )
            diagnostics.append(diagnostic)

    diagnostics.sort(key=lambda d: (d.span.s_line, d.span.s_col))
    return diagnostics


def validate_dates(text: str) -> List[Diagnostic]:
    """Format check of every date attribute value, followed by the per-task logic check."""
    diagnostics = []
    for value in _date_values(text):
        # Macro values such as ${now} are expanded by TaskJuggler itself.
        if value.text.startswith("$"):
            continue
        diagnostic = validate_date_format(value.text, value.span)
        if diagnostic:
            diagnostics.append(diagnostic)

    diagnostics.extend(validate_date_logic(text))
    return diagnostics
