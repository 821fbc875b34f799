from typing import Optional, Tuple

from lark.exceptions import LarkError, UnexpectedCharacters, UnexpectedToken

from ..data_structures import Span
from ..exceptions import AuwlaCompilerError, ErrorCode
from .scanner import LineIndex, ScanError, group_tokens, tokenize


def _located_span(line: int, column: int, pos: int, file_path: str, origin: Optional[Tuple[int, int, int]] = None) -> Span:
    if origin:
        o_line, o_col, o_pos = origin
        column = column + (o_col - 1 if line == 1 else 0)
        line = o_line + line - 1
        pos = o_pos + pos
    return Span(s_line=line, s_col=column, e_line=line, e_col=column + 1, s_pos=pos, e_pos=pos + 1, file_path=file_path)


def scan_error_to_compiler_error(err: ScanError, text: str, file_path: str, origin: Optional[Tuple[int, int, int]] = None) -> AuwlaCompilerError:
    line, column = LineIndex(text).line_col(err.pos)
    return AuwlaCompilerError(err.code, span=_located_span(line, column, err.pos, file_path, origin), **err.details)


def pre_parsing_checks(source_text: str, file_path: str):
    """
    Scans the whole file once before parsing so the common mistakes get a
    precise message instead of a generic parse error:
    1. Unterminated strings, template literals, comments and regexes.
    2. Mismatched or unclosed brackets.
    3. Unclosed or mismatched markup tags.
    """
    try:
        group_tokens(tokenize(source_text))
    except ScanError as e:
        raise scan_error_to_compiler_error(e, source_text, file_path) from e


# A mapping from the lexers' token names to friendly, human-readable names.
FRIENDLY_TOKEN_NAMES = {
    "IMPORT": "the 'import' keyword",
    "EXPORT": "the 'export' keyword",
    "DEFAULT": "the 'default' keyword",
    "FUNCTION": "the 'function' keyword",
    "ASYNC": "the 'async' keyword",
    "DECL": "a declaration keyword",
    "RETURN": "the 'return' keyword",
    "NAME": "a name",
    "PAREN": "a parenthesised group",
    "BRACE": "a block '{ ... }'",
    "BRACKET": "a bracketed group",
    "OP": "an operator",
    "EQ": "an equals sign '='",
    "ARROW": "an arrow '=>'",
    "MARKUP": "markup",
    "_EOS": "the end of the statement",
    "LT": "'<'",
    "LT_SLASH": "'</'",
    "GT": "'>'",
    "SLASH_GT": "'/>'",
    "TAG": "a tag name",
    "ATTR": "an attribute name",
    "EXPR": "an expression '{ ... }'",
    "TEXT": "text",
    "$END": "the end of the file",
}


def _translate_lark_error(err: LarkError, file_path: str, origin: Optional[Tuple[int, int, int]] = None) -> AuwlaCompilerError:
    """Translates a generic LarkError into a user-friendly AuwlaCompilerError."""

    if isinstance(err, UnexpectedToken):
        expected_str = ""
        if err.expected:
            friendly_expected = [FRIENDLY_TOKEN_NAMES.get(e, e) for e in sorted(err.expected)]
            if len(friendly_expected) > 1:
                expected_str = f"Expected one of: {', '.join(friendly_expected[:-1])} or {friendly_expected[-1]}"
            elif friendly_expected:
                expected_str = f"Expected {friendly_expected[0]}"

        found_token = err.token
        found_str = f"but found '{found_token.value}' instead."
        if found_token.type == "$END":
            found_str = "but reached the end of the file instead."

        details = f"{expected_str}, {found_str}" if expected_str else f"Found unexpected token '{found_token.value}'."
        line = err.line if isinstance(err.line, int) and err.line > 0 else 1
        column = err.column if isinstance(err.column, int) and err.column > 0 else 1
        pos = found_token.start_pos if isinstance(found_token.start_pos, int) else 0
        span = _located_span(line, column, pos, file_path, origin)
        return AuwlaCompilerError(ErrorCode.PARSE_UNEXPECTED_TOKEN, span=span, details=details)

    elif isinstance(err, UnexpectedCharacters):
        span = _located_span(err.line, err.column, err.pos_in_stream, file_path, origin)
        return AuwlaCompilerError(ErrorCode.PARSE_INVALID_CHARACTER, span=span, char=err.char)

    # Fallback for any other Lark error
    return AuwlaCompilerError(ErrorCode.PARSE_GENERAL_ERROR, file_path=file_path, details=str(err))
