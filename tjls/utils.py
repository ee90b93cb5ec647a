"""
Utility helpers for the TaskJuggler language tools, including terminal
coloring and a JSON serializer for analysis artifacts.
"""

import json

from pydantic import BaseModel


class TerminalColors:
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    RESET = "\033[0m"


class AnalysisArtifactEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, BaseModel):
            return o.model_dump(mode="json")
        if isinstance(o, set):
            return sorted(o)
        return super().default(o)
