import logging
import os
from fnmatch import fnmatch
from pathlib import Path
from typing import Callable, List, Optional

from pydantic import BaseModel

from tjls.config.config import WORKSPACE_EXCLUDE_DIRS, WORKSPACE_FILE_PATTERNS
from tjls.parser.core.classes import Symbol
from tjls.parser.core.symbols import extract_symbols

logger = logging.getLogger(__name__)

# Kinds listed by a workspace symbol search.
SEARCHABLE_KINDS = ("task", "resource", "account", "scenario")


class WorkspaceSymbol(BaseModel):
    symbol: Symbol
    file_path: str


def find_workspace_files(root: str) -> List[str]:
    """Every TaskJuggler file below `root`, sorted, skipping tool and VCS directories."""
    found = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in WORKSPACE_EXCLUDE_DIRS]
        for filename in filenames:
            if any(fnmatch(filename, pattern) for pattern in WORKSPACE_FILE_PATTERNS):
                found.append(os.path.join(dirpath, filename))
    return sorted(found)


def search_workspace_symbols(
    root: str,
    query: str,
    is_cancelled: Optional[Callable[[], bool]] = None,
) -> List[WorkspaceSymbol]:
    """
    Searches the definitions of every workspace file for `query`.

    A symbol matches when its id or name contains the query, ignoring case;
    an empty query matches everything. `is_cancelled` is polled before each
    file, and a cancelled search returns what it found so far.
    """
    needle = query.lower()
    results = []

    for file_path in find_workspace_files(root):
        if is_cancelled is not None and is_cancelled():
            logger.info("Workspace symbol search cancelled before %s", file_path)
            break
        try:
            text = Path(file_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping unreadable file %s: %s", file_path, e)
            continue

        symbols = extract_symbols(text)
        for kind in SEARCHABLE_KINDS:
            for symbol in symbols.of_kind(kind):
                if needle in symbol.id.lower() or needle in symbol.name.lower():
                    results.append(WorkspaceSymbol(symbol=symbol, file_path=file_path))

    return results
