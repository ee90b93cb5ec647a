import json
import logging
import os
from typing import Any, Callable, Dict, List, Optional

from tjls.parser.core.references import extract_references
from tjls.parser.core.symbols import extract_symbols
from tjls.validators.core.classes import Diagnostic
from tjls.validators.core.dates import validate_dates
from tjls.validators.core.semantic import SemanticValidator
from tjls.validators.core.syntax import validate_braces, validate_duplicate_ids

from .utils import AnalysisArtifactEncoder

logger = logging.getLogger(__name__)


class AnalysisPipeline:
    """
    Orchestrates the analysis of one document snapshot.

    The symbol table and the reference list are built once and shared by the
    validators. Every stage is isolated: an unexpected exception inside one
    stage is logged and the remaining stages still run, so the diagnostics
    are always the concatenation of whatever the healthy stages produced.
    """

    def __init__(self, text: str, file_path: Optional[str] = None):
        self.text = text
        self.file_path = os.path.abspath(file_path) if file_path else "<stdin>"
        self.artifacts: Dict[str, Any] = {}
        self.stage_diagnostics: Dict[str, List[Diagnostic]] = {}
        self.diagnostics: List[Diagnostic] = []

    def run(self) -> List[Diagnostic]:
        # --- Stage 1: Symbol model ---
        symbols = self._run_stage("symbols", extract_symbols, self.text, default=None)
        references = self._run_stage("references", extract_references, self.text, default=None)
        semantic = SemanticValidator(self.text, symbols, references) if symbols is not None and references is not None else None

        # --- Stage 2: Validators ---
        self._run_validation_stage("dates", validate_dates, self.text)
        self._run_validation_stage("braces", validate_braces, self.text)
        self._run_validation_stage("duplicates", validate_duplicate_ids, self.text, symbols)
        if semantic is not None:
            self._run_validation_stage("references", semantic.validate_references)
            self._run_validation_stage("cycles", semantic.validate_circular_dependencies)
        else:
            logger.warning("Skipping reference and cycle checks for %s: symbol model unavailable", self.file_path)

        self.artifacts["diagnostics"] = self.diagnostics
        return self.diagnostics

    def _run_stage(self, name: str, func: Callable, *args, default=None) -> Any:
        """Runs a single function as a stage, storing and returning its result."""
        try:
            result = func(*args)
        except Exception:
            logger.exception("Analysis stage '%s' failed for %s", name, self.file_path)
            return default
        self.artifacts[name] = result
        return result

    def _run_validation_stage(self, name: str, func: Callable, *args):
        try:
            result = func(*args)
        except Exception:
            logger.exception("Validation stage '%s' failed for %s", name, self.file_path)
            result = []
        self.stage_diagnostics[name] = result
        self.diagnostics.extend(result)

    def save_artifact(self, name: str, output_path: Optional[str] = None) -> str:
        """Saves an artifact to a JSON file and returns the path written."""
        if output_path is None:
            base_name = "stdin_output" if self.file_path == "<stdin>" else os.path.splitext(self.file_path)[0]
            output_path = f"{base_name}.{name}.json"

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(self.artifacts.get(name), f, indent=2, sort_keys=False, cls=AnalysisArtifactEncoder)
        logger.info("Saved artifact '%s' to %s", name, output_path)
        return output_path

def analyze_document(text: str, file_path: Optional[str] = None) -> List[Diagnostic]:
    """High-level entry point: all diagnostics of a document, in stage order."""
    return AnalysisPipeline(text, file_path).run()
