import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from tjls.exceptions import ErrorCode, RenameError
from tjls.navigation import build_outline, find_definition, find_references, prepare_rename, rename_symbol, word_at
from tjls.parser.utils.factory_helpers import get_span
from tjls.scanner.core.classes import Position

PLAN = """resource dev "Developer"
task docs "Docs" {
  allocate dev
}
task impl "Impl" {
  depends docs
  allocate dev
}
account cost "Cost"
"""


def _pos(line, character):
    return Position(line=line, character=character)


def test_word_at():
    assert word_at(PLAN, _pos(5, 11)) == ("docs", get_span(5, 10, 14))
    assert word_at(PLAN, _pos(5, 14)) == ("docs", get_span(5, 10, 14))
    assert word_at(PLAN, _pos(5, 0)) is None


def test_find_definition_from_reference():
    symbol = find_definition(PLAN, _pos(5, 11))
    assert (symbol.kind, symbol.id, symbol.id_span) == ("task", "docs", get_span(1, 5, 9))


def test_find_definition_of_unknown_word():
    assert find_definition(PLAN, _pos(5, 4)) is None


def test_find_references_with_declaration():
    spans = find_references(PLAN, _pos(0, 10))
    assert spans == [get_span(0, 9, 12), get_span(2, 11, 14), get_span(6, 11, 14)]


def test_find_references_without_declaration():
    assert find_references(PLAN, _pos(1, 6), include_declaration=False) == [get_span(5, 10, 14)]


def test_prepare_rename():
    assert prepare_rename(PLAN, _pos(5, 11)) == get_span(5, 10, 14)
    assert prepare_rename(PLAN, _pos(2, 4)) is None


def test_rename_replaces_definition_and_every_reference():
    edit = rename_symbol(PLAN, _pos(2, 12), "developer")

    assert len(edit.edits) == 3
    assert all(e.new_text == "developer" for e in edit.edits)
    renamed = edit.apply(PLAN)
    assert renamed.count("developer") == 3
    assert 'resource developer "Developer"' in renamed
    assert " dev\n" not in renamed


def test_rename_account():
    edit = rename_symbol(PLAN, _pos(8, 9), "budget")
    assert [e.span for e in edit.edits] == [get_span(8, 8, 12)]


@pytest.mark.parametrize(
    "position, new_name, error",
    [
        pytest.param(_pos(2, 12), "1dev", ErrorCode.INVALID_IDENTIFIER, id="invalid_identifier"),
        pytest.param(_pos(2, 12), "dev-team", ErrorCode.INVALID_IDENTIFIER, id="dash_in_identifier"),
        pytest.param(_pos(5, 11), "impl", ErrorCode.NAME_ALREADY_EXISTS, id="collides_with_task"),
        pytest.param(_pos(5, 11), "cost", ErrorCode.NAME_ALREADY_EXISTS, id="collides_with_other_kind"),
        pytest.param(_pos(2, 4), "anything", ErrorCode.NOT_RENAMEABLE, id="keyword"),
    ],
)
def test_rejected_renames(position, new_name, error):
    with pytest.raises(RenameError) as excinfo:
        rename_symbol(PLAN, position, new_name)

    assert excinfo.value.code == error


def test_rename_error_message():
    with pytest.raises(RenameError) as excinfo:
        rename_symbol(PLAN, _pos(5, 11), "impl")
    assert excinfo.value.user_message == "Cannot rename: impl already exists."


NESTED_PLAN = """task p "P" {
  task c "C" {}
}
task d "D" {
  depends p.c
}
"""


def test_rename_parent_updates_dotted_paths():
    renamed = rename_symbol(NESTED_PLAN, _pos(0, 5), "phase").apply(NESTED_PLAN)

    assert 'task phase "P"' in renamed
    assert "depends phase.c" in renamed
    assert "p.c" not in renamed


def test_rename_from_path_prefix():
    edit = rename_symbol(NESTED_PLAN, _pos(4, 10), "phase")
    assert [e.span for e in edit.edits] == [get_span(0, 5, 6), get_span(4, 10, 11)]


def test_references_of_parent_include_path_prefix():
    assert find_references(NESTED_PLAN, _pos(0, 5), include_declaration=False) == [get_span(4, 10, 11)]


def test_undefined_reference_is_not_renameable():
    text = 'task a "A" {\n  depends ghost\n}'
    assert prepare_rename(text, _pos(1, 12)) is None
    with pytest.raises(RenameError):
        rename_symbol(text, _pos(1, 12), "spirit")


OUTLINE_PLAN = """task parent "Parent" {
  effort 5d
  allocate dev
  task child "Child" {
    milestone
  }
}
resource dev "Developer" {
  rate 400
}
account cost "Cost"
scenario plan "Plan"
macro note [ x ]
"""


def test_build_outline():
    roots = build_outline(OUTLINE_PLAN)

    assert [(n.symbol.id, n.detail) for n in roots] == [
        ("parent", "effort 5d, allocate dev"),
        ("dev", "rate 400"),
        ("cost", "account"),
        ("plan", "scenario"),
    ]
    (child,) = roots[0].children
    assert (child.symbol.id, child.detail, child.children) == ("child", "milestone", [])


def test_outline_task_without_attributes():
    (node,) = build_outline('task t "T" {\n}')
    assert node.detail == "task"
