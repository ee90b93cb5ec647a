import logging
import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from tjls.workspace import find_workspace_files, search_workspace_symbols


@pytest.fixture
def create_files(tmp_path):
    """A factory fixture to create a temporary workspace tree from a dictionary."""

    def _create_files(file_dict):
        for name, content in file_dict.items():
            p = tmp_path / name
            p.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                p.write_bytes(content)
            else:
                p.write_text(content, encoding="utf-8")
        return tmp_path

    return _create_files


@pytest.fixture
def workspace(create_files):
    return create_files(
        {
            "main.tjp": 'project demo "Demo" 2024-01-01 +1m {\n}\ntask alpha "Alpha Phase" {\n}\nscenario plan "Plan"\n',
            "sub/people.tji": 'resource bob "Robert"\naccount cost "Cost"\n',
            "node_modules/pkg/hidden.tjp": 'task hidden "Hidden"\n',
            ".git/stale.tjp": 'task stale "Stale"\n',
            "notes.txt": 'task note "Not a project file"\n',
        }
    )


def test_find_workspace_files(workspace):
    files = find_workspace_files(str(workspace))
    assert files == [str(workspace / "main.tjp"), str(workspace / "sub" / "people.tji")]


@pytest.mark.parametrize(
    "query, expected",
    [
        pytest.param("", ["alpha", "plan", "bob", "cost"], id="empty_query_matches_all"),
        pytest.param("ALPHA", ["alpha"], id="case_insensitive_id"),
        pytest.param("phase", ["alpha"], id="matches_name"),
        pytest.param("rob", ["bob"], id="name_substring"),
        pytest.param("hidden", [], id="excluded_directory"),
    ],
)
def test_search_workspace_symbols(workspace, query, expected):
    results = search_workspace_symbols(str(workspace), query)
    assert [r.symbol.id for r in results] == expected


def test_results_carry_their_file(workspace):
    (result,) = search_workspace_symbols(str(workspace), "bob")
    assert result.file_path == str(workspace / "sub" / "people.tji")
    assert result.symbol.kind == "resource"


def test_cancellation_is_checked_per_file(workspace):
    calls = []

    def is_cancelled():
        calls.append(True)
        return len(calls) > 1

    results = search_workspace_symbols(str(workspace), "", is_cancelled=is_cancelled)

    assert [r.symbol.id for r in results] == ["alpha", "plan"]
    assert len(calls) == 2


def test_unreadable_file_is_skipped(create_files, caplog):
    root = create_files({"a.tjp": b"task broken \xff\xfe", "b.tjp": 'task ok "OK"\n'})

    with caplog.at_level(logging.WARNING, logger="tjls.workspace"):
        results = search_workspace_symbols(str(root), "")

    assert [r.symbol.id for r in results] == ["ok"]
    assert "Skipping unreadable file" in caplog.text
