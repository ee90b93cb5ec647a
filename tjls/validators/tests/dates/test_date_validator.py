import pytest

from tjls.parser.utils.factory_helpers import get_span
from tjls.validators.core.classes import Severity
from tjls.validators.core.dates import parse_date, validate_date_format, validate_date_logic, validate_dates


def _task(*attributes, task_id="dev"):
    body = "\n".join(f"    {a}" for a in attributes)
    return f'task {task_id} "Development" {{\n{body}\n}}\n'


@pytest.mark.parametrize(
    "value, code",
    [
        pytest.param("2024/06/01", "invalid-date-format", id="slashes"),
        pytest.param("2024-6-1", "invalid-date-format", id="single_digits"),
        pytest.param("tomorrow", "invalid-date-format", id="word"),
        pytest.param("2024-13-01", "invalid-date-value", id="month_13"),
        pytest.param("2024-02-30", "invalid-date-value", id="feb_30"),
        pytest.param("2023-02-29", "invalid-date-value", id="not_a_leap_year"),
    ],
)
def test_invalid_dates(value, code):
    (diagnostic,) = validate_dates(_task(f"start {value}"))

    assert diagnostic.code == code
    assert diagnostic.severity == Severity.ERROR
    assert value in diagnostic.message
    assert diagnostic.span == get_span(1, 10, 10 + len(value))


@pytest.mark.parametrize(
    "line",
    [
        pytest.param("start 2024-02-29", id="leap_day"),
        pytest.param("end ${projectend}", id="macro"),
        pytest.param("maxend $enddate", id="bare_macro"),
        pytest.param('note "start whenever"', id="inside_string"),
    ],
)
def test_valid_or_exempt_dates(line):
    assert validate_dates(_task(line)) == []


def test_format_message():
    diagnostic = validate_date_format("2024/06/01", get_span(0, 0, 10))
    assert diagnostic.message == "Invalid date format. Expected YYYY-MM-DD, got: 2024/06/01"


def test_parse_date():
    assert parse_date("2024-06-01").isoformat() == "2024-06-01"
    with pytest.raises(ValueError):
        parse_date("2024-06-31")


@pytest.mark.parametrize(
    "attributes, count",
    [
        pytest.param(("start 2024-06-01", "end 2024-05-01"), 1, id="end_before_start"),
        pytest.param(("start 2024-06-01", "end 2024-06-01"), 1, id="end_equals_start"),
        pytest.param(("start 2024-06-01", "end 2024-06-15"), 0, id="end_after_start"),
        pytest.param(("start 2024-06-01",), 0, id="only_start"),
        pytest.param(("end 2024-06-15",), 0, id="only_end"),
        pytest.param(("minstart 2024-06-01", "maxstart 2024-06-15", "minend 2024-07-01", "maxend 2024-07-15"), 0, id="valid_constraints"),
    ],
)
def test_date_logic(attributes, count):
    assert len(validate_date_logic(_task(*attributes))) == count


def test_end_before_start_message():
    (diagnostic,) = validate_date_logic(_task("start 2024-06-01", "end 2024-05-01"))

    assert diagnostic.severity == Severity.ERROR
    assert diagnostic.code == "invalid-date-range"
    assert diagnostic.message == "End date (2024-05-01) must be after start date (2024-06-01)"
    assert diagnostic.span == get_span(2, 8, 18)


@pytest.mark.parametrize(
    "attributes, attr",
    [
        pytest.param(("minstart 2024-06-01", "maxstart 2024-05-01"), "maxstart", id="maxstart"),
        pytest.param(("minend 2024-06-15", "maxend 2024-06-01"), "maxend", id="maxend"),
    ],
)
def test_constraint_warnings(attributes, attr):
    (diagnostic,) = validate_date_logic(_task(*attributes))

    assert diagnostic.severity == Severity.WARNING
    assert diagnostic.code == "invalid-constraint-range"
    assert diagnostic.message.startswith(attr)
    assert f"must be after min{attr[3:]}" in diagnostic.message


def test_each_task_is_checked_separately():
    text = (
        _task("start 2024-06-01", "end 2024-05-01", task_id="task1")
        + _task("start 2024-07-01", "end 2024-08-01", task_id="task2")
        + _task("start 2024-09-01", "end 2024-08-01", task_id="task3")
    )
    diagnostics = validate_date_logic(text)
    assert [d.span.s_line for d in diagnostics] == [2, 10]


def test_nested_task_dates_are_scoped():
    text = 'task p "P" {\n  start 2024-06-01\n  task c "C" {\n    end 2024-05-01\n  }\n}'
    assert validate_date_logic(text) == []


def test_last_value_wins():
    assert validate_date_logic(_task("start 2024-06-01", "start 2024-05-01", "end 2024-05-15")) == []


def test_dates_outside_tasks_are_ignored_by_logic():
    assert validate_date_logic("start 2024-06-01\nend 2024-05-01") == []


def test_logic_diagnostics_follow_format_diagnostics():
    diagnostics = validate_dates(_task("start 2024-06-01", "end 2024-05-01", "maxend 2024-99-01"))
    assert [d.code for d in diagnostics] == ["invalid-date-value", "invalid-date-range"]
