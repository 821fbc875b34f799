"""
Utility helpers for the auwla compiler: terminal coloring and the JSON
serializer used for stage artifacts and route metadata.
"""

import json

from lark import Token
from pydantic import BaseModel


class TerminalColors:
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    RESET = "\033[0m"


class CompilerArtifactEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, BaseModel):
            return o.model_dump(mode="json")
        if isinstance(o, Token):
            return o.value
        if isinstance(o, (set, frozenset)):
            return sorted(o)
        return super().default(o)


def dump_artifact(data, output_path: str):
    """Writes any compiler artifact to `output_path` as indented JSON."""
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=False, cls=CompilerArtifactEncoder)
