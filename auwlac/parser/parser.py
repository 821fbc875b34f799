import os
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from lark import Lark, LarkError, Token, Transformer

from ..data_structures import Span
from .classes import MarkupAttribute, MarkupElement, MarkupExpression, MarkupFragment, MarkupNode, MarkupText
from .helpers import _translate_lark_error, scan_error_to_compiler_error
from .lexer import MarkupLexer, SourceLexer
from .scanner import ScanError


def _load_parser(grammar_name: str, lexer) -> Lark:
    try:
        # Use importlib.resources for robust package data access
        from importlib.resources import files as pkg_files

        grammar = (pkg_files("auwlac.parser") / grammar_name).read_text()
    except Exception:
        # Fallback for development environments
        grammar_path = os.path.join(os.path.dirname(__file__), grammar_name)
        with open(grammar_path, "r") as f:
            grammar = f.read()
    # Note here the start="start" parameter must match the "start" rule in the .lark file
    return Lark(grammar, start="start", parser="lalr", lexer=lexer)


SOURCE_PARSER = _load_parser("source.lark", SourceLexer)
MARKUP_PARSER = _load_parser("markup.lark", MarkupLexer)


# --- Statement level ---


@dataclass
class FunctionDef:
    keyword: Token
    is_async: bool
    signature: List[Token]
    body: Token


@dataclass
class VariableDef:
    keyword: Token
    binding: Token
    annotation: List[Token]
    initializer: Optional[List[Token]]


@dataclass
class Statement:
    """
    One statement of a file or function body, before classification.
    `kind` is one of: import, function, variable, return, expression,
    default_expression and passthrough.
    """

    kind: str
    first: Token
    last: Token
    payload: Any = None
    code_start: int = 0
    is_exported: bool = False
    is_default: bool = False
    tokens: List[Token] = field(default_factory=list)

    @property
    def start(self) -> int:
        return self.first.start_pos

    @property
    def end(self) -> int:
        return self.last.end_pos


def _last_token(payload) -> Token:
    if isinstance(payload, FunctionDef):
        return payload.body
    if isinstance(payload, VariableDef):
        if payload.initializer:
            return payload.initializer[-1]
        return payload.annotation[-1] if payload.annotation else payload.binding
    return payload[-1]


def _first_token(payload) -> Token:
    if isinstance(payload, (FunctionDef, VariableDef)):
        return payload.keyword
    return payload[0]


class SourceTransformer(Transformer):
    """
    Turns the statement parse tree into a flat list of `Statement` records.
    Each rule method is called by lark bottom-up with the already
    transformed children of the matching rule or alias.
    """

    def _statement(self, kind: str, first: Token, payload, exported: bool = False, default: bool = False) -> Statement:
        return Statement(
            kind=kind,
            first=first,
            last=_last_token(payload),
            payload=payload,
            code_start=_first_token(payload).start_pos,
            is_exported=exported,
            is_default=default,
        )

    # --- Pieces ---
    def expression(self, items):
        return list(items)

    def signature(self, items):
        return list(items)

    def type_annotation(self, items):
        return list(items)

    def initializer(self, items):
        return items[1]

    def binding(self, items):
        return items[0]

    def function_def(self, items):
        return FunctionDef(keyword=items[0], is_async=items[0].type == "ASYNC", signature=items[-2], body=items[-1])

    def variable_def(self, items):
        initializer = items[3] if len(items) > 3 else None
        return VariableDef(keyword=items[0], binding=items[1], annotation=items[2], initializer=initializer)

    # --- Statements ---
    def import_decl(self, items):
        return self._statement("import", items[0], items[1])

    def export_default_function(self, items):
        return self._statement("function", items[0], items[2], exported=True, default=True)

    def export_default_expression(self, items):
        return self._statement("default_expression", items[0], items[2], exported=True, default=True)

    def export_function(self, items):
        return self._statement("function", items[0], items[1], exported=True)

    def export_variable(self, items):
        return self._statement("variable", items[0], items[1], exported=True)

    def export_other(self, items):
        statement = self._statement("passthrough", items[0], items[1], exported=True)
        statement.code_start = items[0].start_pos
        return statement

    def function_decl(self, items):
        fn = items[0]
        return self._statement("function", fn.keyword, fn)

    def variable_decl(self, items):
        var = items[0]
        return self._statement("variable", var.keyword, var)

    def return_stmt(self, items):
        payload = items[1] if len(items) > 1 else [items[0]]
        statement = self._statement("return", items[0], payload)
        statement.tokens = items[1] if len(items) > 1 else []
        return statement

    def expression_stmt(self, items):
        return self._statement("expression", items[0][0], items[0])

    def start(self, items):
        return list(items)


def parse_statements(source_text: str, file_path: str) -> List[Statement]:
    """Parses a file (or a function body padded to its file offsets) into statements."""
    try:
        parse_tree = SOURCE_PARSER.parse(source_text)
        return SourceTransformer().transform(parse_tree)
    except ScanError as e:
        raise scan_error_to_compiler_error(e, source_text, file_path) from e
    except LarkError as e:
        raise _translate_lark_error(e, file_path) from e


# --- Markup ---


def _normalize_text(raw: str) -> str:
    """Applies the markup whitespace rule: line breaks and the indentation around them vanish."""
    lines = raw.split("\n")
    if len(lines) == 1:
        return raw
    kept = []
    for i, line in enumerate(lines):
        if i > 0:
            line = line.lstrip()
        if i < len(lines) - 1:
            line = line.rstrip()
        if line:
            kept.append(line)
    return " ".join(kept)


class MarkupTransformer(Transformer):
    """
    Builds the `MarkupNode` tree. Token positions are relative to the parsed
    snippet; `origin` (line, column, offset) moves them back into the file.
    """

    def __init__(self, file_path: str, origin: Tuple[int, int, int] = (1, 1, 0)):
        self.file_path = file_path
        self.origin = origin
        super().__init__()

    # --- Helper methods for creating spans ---
    def _shift(self, line: int, column: int) -> Tuple[int, int]:
        o_line, o_col, _ = self.origin
        return o_line + line - 1, column + (o_col - 1 if line == 1 else 0)

    def _span(self, first: Token, last: Token) -> Span:
        s_line, s_col = self._shift(first.line, first.column)
        e_line, e_col = self._shift(last.end_line, last.end_column)
        offset = self.origin[2]
        return Span(
            s_line=s_line,
            s_col=s_col,
            e_line=e_line,
            e_col=e_col,
            s_pos=offset + first.start_pos,
            e_pos=offset + last.end_pos,
            file_path=self.file_path,
        )

    # --- Attributes ---
    def string_attribute(self, items):
        name, _, value = items
        return MarkupAttribute(name=name.value, kind="string", value=value.value, span=self._span(name, value))

    def expression_attribute(self, items):
        name, _, value = items
        return MarkupAttribute(name=name.value, kind="expression", value=value.value, span=self._span(name, value))

    def boolean_attribute(self, items):
        name = items[0]
        return MarkupAttribute(name=name.value, kind="boolean", span=self._span(name, name))

    def spread_attribute(self, items):
        spread = items[0]
        return MarkupAttribute(kind="spread", value=spread.value, span=self._span(spread, spread))

    def attributes(self, items):
        return list(items)

    # --- Children ---
    def text(self, items):
        value = _normalize_text(items[0].value)
        # Whitespace that spans a line break vanishes; a run on one line is kept.
        if not value:
            return None
        return MarkupText(value=value, span=self._span(items[0], items[0]))

    def expression_slot(self, items):
        return MarkupExpression(expression=items[0].value, span=self._span(items[0], items[0]))

    def children(self, items):
        return [child for child in items if child is not None]

    # --- Nodes ---
    def self_closing_element(self, items):
        lt, tag, attributes, end = items
        return MarkupElement(tag=tag.value, attributes=attributes, children=[], span=self._span(lt, end))

    def element(self, items):
        lt, tag, attributes, _, children, _, _, end = items
        return MarkupElement(tag=tag.value, attributes=attributes, children=children, span=self._span(lt, end))

    def fragment(self, items):
        start, children, end = items
        return MarkupFragment(children=children, span=self._span(start, end))

    def start(self, items):
        return items[0]


def parse_markup(snippet: str, file_path: str = "<stdin>", origin: Tuple[int, int, int] = (1, 1, 0)) -> MarkupNode:
    """
    Parses one markup tree. `origin` is the (line, column, offset) of the
    snippet's first character in its file.
    """
    try:
        parse_tree = MARKUP_PARSER.parse(snippet)
        return MarkupTransformer(file_path, origin).transform(parse_tree)
    except ScanError as e:
        raise scan_error_to_compiler_error(e, snippet, file_path, origin) from e
    except LarkError as e:
        raise _translate_lark_error(e, file_path, origin) from e
