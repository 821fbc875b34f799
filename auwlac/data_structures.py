"""
Structures shared by every compiler stage: source locations and the
diagnostics each stage accumulates while it works.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Span(BaseModel):
    """Represents a location in the source code for precise error reporting."""

    s_line: int
    s_col: int
    e_line: int
    e_col: int
    s_pos: int = 0
    e_pos: int = 0
    file_path: Optional[str] = None


class DiagnosticKind(str, Enum):
    PARSE_ERROR = "ParseError"
    SCOPE_VIOLATION = "ScopeViolation"
    MARKUP_ERROR = "MarkupError"
    CODEGEN_FALLBACK = "CodegenFallback"
    INTERNAL_ERROR = "InternalError"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Diagnostic(BaseModel):
    kind: DiagnosticKind
    code: str
    severity: Severity
    message: str
    span: Optional[Span] = None
    file_path: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    @property
    def location(self) -> str:
        """`file:line:col`, or just the file when the diagnostic has no span."""
        location = self.file_path or (self.span.file_path if self.span else None) or "<stdin>"
        if self.span:
            location = f"{location}:{self.span.s_line}:{self.span.s_col}"
        return location

    def format(self) -> str:
        """Renders the diagnostic as `file:line:col: kind: message`."""
        return f"{self.location}: {self.severity.value} {self.kind.value}: {self.message}"
