"""A small indentation-aware writer for the generated module text."""

from contextlib import contextmanager
from typing import List

INDENT_UNIT = "  "


class SourceWriter:
    def __init__(self):
        self.lines: List[str] = []
        self.level = 0

    def line(self, text: str = ""):
        self.lines.append(INDENT_UNIT * self.level + text if text else "")

    def blank(self):
        if self.lines and self.lines[-1] != "":
            self.lines.append("")

    @contextmanager
    def indented(self):
        self.level += 1
        try:
            yield
        finally:
            self.level -= 1

    def source(self, text: str, column: int = 1):
        """
        Writes user source text at the current level. `column` is where the
        text started in its file; the continuation lines keep their
        indentation relative to it.
        """
        lines = text.split("\n")
        rest = [line for line in lines[1:] if line.strip()]
        margin = min([column - 1] + [len(line) - len(line.lstrip()) for line in rest])
        self.line(lines[0].strip())
        for line in lines[1:]:
            self.line(line[margin:].rstrip() if line.strip() else "")

    def render(self) -> str:
        return "\n".join(self.lines).rstrip() + "\n"
