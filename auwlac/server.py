"""
A minimal language server: compiles the open component on every change and
publishes the compiler diagnostics.
"""

import os
from typing import List
from urllib.parse import unquote, urlparse

from lsprotocol.types import Diagnostic, DiagnosticSeverity, Position, Range
from pygls.server import LanguageServer

from .compiler import compile_component
from .data_structures import Diagnostic as CompilerDiagnostic
from .data_structures import Severity

server = LanguageServer("auwla-server", "v1")

SEVERITIES = {
    Severity.ERROR: DiagnosticSeverity.Error,
    Severity.WARNING: DiagnosticSeverity.Warning,
}


def _uri_to_path(uri: str) -> str:
    """Converts a file URI to a platform-specific file path."""
    parsed = urlparse(uri)
    return os.path.abspath(unquote(parsed.path))


def to_lsp_diagnostic(diagnostic: CompilerDiagnostic) -> Diagnostic:
    """Converts a compiler diagnostic (1-based) into an LSP diagnostic (0-based)."""
    if diagnostic.span is not None:
        span = diagnostic.span
        start = Position(line=max(span.s_line - 1, 0), character=max(span.s_col - 1, 0))
        end = Position(line=max(span.e_line - 1, 0), character=max(span.e_col - 1, 0))
    else:
        start, end = Position(line=0, character=0), Position(line=0, character=100)
    return Diagnostic(
        range=Range(start=start, end=end),
        message=diagnostic.message,
        severity=SEVERITIES[diagnostic.severity],
        code=diagnostic.code,
        source="auwlac",
    )


def collect_diagnostics(source: str, file_path: str) -> List[Diagnostic]:
    result = compile_component(source, file_path=file_path)
    return [to_lsp_diagnostic(d) for d in result.diagnostics]


def _validate(ls, params):
    text_doc = ls.workspace.get_document(params.text_document.uri)
    file_path = _uri_to_path(params.text_document.uri)
    ls.publish_diagnostics(params.text_document.uri, collect_diagnostics(text_doc.source, file_path))


@server.feature("textDocument/didOpen")
async def did_open(ls, params):
    _validate(ls, params)


@server.feature("textDocument/didChange")
def did_change(ls, params):
    _validate(ls, params)


def start_server():
    server.start_io()


if __name__ == "__main__":
    start_server()
