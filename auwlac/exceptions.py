"""
Error codes and exception types for the auwla compiler.

Every problem the compiler can report is an `ErrorCode`. The member name
prefix decides the diagnostic kind (PARSE_, SCOPE_, MARKUP_, CODEGEN_,
INTERNAL_), and the value is the message template.
"""

from enum import Enum
from typing import Optional

from .data_structures import Diagnostic, DiagnosticKind, Severity, Span


class ErrorCode(Enum):

    # --- Syntax Errors ---
    PARSE_UNMATCHED_BRACKET = "Syntax Error: Unmatched closing bracket '{char}'."
    PARSE_UNCLOSED_BRACKET = "Syntax Error: Bracket '{char}' was never closed."
    PARSE_UNCLOSED_STRING = "Syntax Error: Unclosed string literal."
    PARSE_UNCLOSED_TEMPLATE = "Syntax Error: Unclosed template literal."
    PARSE_UNCLOSED_COMMENT = "Syntax Error: Unclosed block comment."
    PARSE_UNCLOSED_REGEX = "Syntax Error: Unclosed regular expression literal."
    PARSE_MALFORMED_MARKUP = "Syntax Error: Malformed markup. {details}"
    PARSE_MISMATCHED_TAG = "Syntax Error: Closing tag '</{found}>' does not match the open tag '<{expected}>'."

    # The parser found a token that is valid, but not in the right place.
    PARSE_UNEXPECTED_TOKEN = "Syntax Error: Invalid syntax. {details}"
    PARSE_INVALID_CHARACTER = "Syntax Error: Invalid character '{char}' found."
    PARSE_GENERAL_ERROR = "Syntax Error: A general parsing error occurred. Details: {details}"

    # --- Structural Errors ---
    PARSE_NO_COMPONENT = "No component found. A component file must declare a function that returns markup."
    PARSE_MULTIPLE_DEFAULT_EXPORTS = "Multiple default exports found ('{first}' and '{second}'). Only one component can be the default export."
    PARSE_PAGE_NOT_DEFAULT = "The @page directive needs a default-exported component, but no default export was found (components: {names})."
    PARSE_RETURN_OUTSIDE_FUNCTION = "'return' is only allowed inside a function."

    # --- Scoping ---
    SCOPE_UI_REFERENCE = "'{symbol}' is declared inside component '{component}' and is not visible to the top-level declaration '{owner}'."
    SCOPE_DEPENDENCY_CYCLE = "Declarations {cycle} reference each other and are emitted in their original order."
    SCOPE_EXPORT_RELOCATED = "The 'export' of '{symbol}' was dropped because page declarations are moved into the page function."
    SCOPE_UNREACHABLE_PAGE_SYMBOL = "'{symbol}' is declared in the page function of '{page}', which component '{component}' cannot reach from module level."

    # --- Markup ---
    MARKUP_ORPHAN_CONDITIONAL = "'{helper}' must directly follow a $if or $elseif call; the conditional chain is broken."
    MARKUP_MALFORMED_HELPER = "Malformed call to '{helper}': {details}"
    MARKUP_MISSING_KEY = "The list rendered from '{source}' has no key. Items fall back to their index and keep no stable identity across reorders."
    MARKUP_NON_REACTIVE_EACH = "'$each' expects a reactive container but '{source}' is not one; a static loop is generated."

    # --- Code Generation ---
    CODEGEN_UNSUPPORTED_EXPRESSION = "The markup expression '{expression}' cannot be compiled and is emitted as inert text."
    CODEGEN_MARKUP_OUTSIDE_RETURN = "Markup outside the returned tree of '{component}' is emitted as written and is not compiled."
    CODEGEN_COMPONENT_CHILDREN = "The children of component '{component}' are not passed to it and were dropped."

    INTERNAL_ERROR = "Internal compiler error: {details}"

    @property
    def kind(self) -> DiagnosticKind:
        return _KIND_BY_PREFIX[self.name.split("_", 1)[0]]

    @property
    def severity(self) -> Severity:
        return Severity.WARNING if self in _WARNINGS else Severity.ERROR


_KIND_BY_PREFIX = {
    "PARSE": DiagnosticKind.PARSE_ERROR,
    "SCOPE": DiagnosticKind.SCOPE_VIOLATION,
    "MARKUP": DiagnosticKind.MARKUP_ERROR,
    "CODEGEN": DiagnosticKind.CODEGEN_FALLBACK,
    "INTERNAL": DiagnosticKind.INTERNAL_ERROR,
}

_WARNINGS = {
    ErrorCode.SCOPE_DEPENDENCY_CYCLE,
    ErrorCode.SCOPE_EXPORT_RELOCATED,
    ErrorCode.MARKUP_MISSING_KEY,
    ErrorCode.MARKUP_NON_REACTIVE_EACH,
    ErrorCode.CODEGEN_UNSUPPORTED_EXPRESSION,
    ErrorCode.CODEGEN_MARKUP_OUTSIDE_RETURN,
    ErrorCode.CODEGEN_COMPONENT_CHILDREN,
}


def make_diagnostic(code: ErrorCode, span: Optional[Span] = None, file_path: Optional[str] = None, **kwargs) -> Diagnostic:
    """Builds the diagnostic for a recoverable problem without raising."""
    return Diagnostic(
        kind=code.kind,
        code=code.name,
        severity=code.severity,
        message=code.value.format(**kwargs),
        span=span,
        file_path=file_path or (span.file_path if span else None),
    )


class AuwlaCompilerError(Exception):
    def __init__(
        self,
        code: ErrorCode,
        span: Optional[Span] = None,
        file_path: Optional[str] = None,
        **kwargs,
    ):
        self.code = code
        self.span = span
        self.file_path = file_path or (span.file_path if span else None)
        self.details = kwargs

        core_message = code.value.format(**kwargs)

        location_prefix = ""
        if span:
            location_prefix = f"Error in '{self.file_path}' (Line: {span.s_line}, Column: {span.s_col}):\n"
        elif self.file_path:
            location_prefix = f"Error in '{self.file_path}': "

        self.core_message = core_message
        self.message = location_prefix + core_message

        super().__init__(self.message)

    def to_diagnostic(self) -> Diagnostic:
        return make_diagnostic(self.code, self.span, self.file_path, **self.details)


class InternalCompilerError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
