"""
A mode-aware scanner for component source text.

The scanner splits text into coarse tokens: names, numbers, strings,
template literals, regular expressions, punctuators and whole markup trees.
Markup is recognised when a `<` sits where an expression may start and is
followed by a letter or `>`. Everything downstream (the lark lexers, the
symbol extractor, the markup analyser) is built on these helpers.
"""

import re
from bisect import bisect_right
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple, Union

from ..config.config import EXPRESSION_KEYWORDS
from ..exceptions import ErrorCode

NAME = "NAME"
NUMBER = "NUMBER"
STRING = "STRING"
TEMPLATE = "TEMPLATE"
REGEX = "REGEX"
MARKUP = "MARKUP"
PUNCT = "PUNCT"

IDENT_RE = re.compile(r"[A-Za-z_$][\w$]*")
NUMBER_RE = re.compile(r"0[xXbBoO][0-9a-fA-F_]+n?|(?:\d[\d_]*\.?[\d_]*|\.\d[\d_]*)(?:[eE][+-]?\d+)?n?")
TAG_NAME_RE = re.compile(r"[A-Za-z][\w$.:-]*")
ATTR_NAME_RE = re.compile(r"[A-Za-z_$][\w$:-]*")
REGEX_FLAGS_RE = re.compile(r"[a-z]*")
DIGITS = "0123456789"

PUNCTUATORS = (
    ">>>=", "...", "===", "!==", "**=", "<<=", ">>=", ">>>", "&&=", "||=", "??=",
    "=>", "==", "!=", "<=", ">=", "&&", "||", "??", "?.", "++", "--", "+=", "-=",
    "*=", "/=", "%=", "&=", "|=", "^=", "**", "<<", ">>",
)

BRACKET_PAIRS = {"(": ")", "[": "]", "{": "}"}
CLOSING_BRACKETS = set(BRACKET_PAIRS.values())


class ScanError(Exception):
    """Raised by the scanner; `pos` is an offset into the scanned text."""

    def __init__(self, code: ErrorCode, pos: int, **kwargs):
        self.code = code
        self.pos = pos
        self.details = kwargs
        super().__init__(code.value.format(**kwargs))


@dataclass(frozen=True)
class ScanToken:
    kind: str
    value: str
    start: int
    end: int
    newline_before: bool = False


@dataclass
class TokenGroup:
    """A bracketed region: its opening token, nested items and closing token."""

    open: ScanToken
    items: List[Union[ScanToken, "TokenGroup"]]
    close: ScanToken

    @property
    def bracket(self) -> str:
        return self.open.value

    @property
    def start(self) -> int:
        return self.open.start

    @property
    def end(self) -> int:
        return self.close.end

    @property
    def newline_before(self) -> bool:
        return self.open.newline_before


Item = Union[ScanToken, TokenGroup]


class LineIndex:
    """Maps character offsets to 1-based (line, column) pairs."""

    def __init__(self, text: str):
        self.starts = [0] + [m.end() for m in re.finditer("\n", text)]

    def line_col(self, pos: int) -> Tuple[int, int]:
        line = bisect_right(self.starts, pos)
        return line, pos - self.starts[line - 1] + 1


# --- Skipping helpers ---
# Each helper receives the offset of the construct's first character and
# returns the offset just past its end.


def skip_string(text: str, pos: int) -> int:
    quote = text[pos]
    i = pos + 1
    while i < len(text):
        c = text[i]
        if c == "\\":
            i += 2
            continue
        if c == quote:
            return i + 1
        if c == "\n":
            break
        i += 1
    raise ScanError(ErrorCode.PARSE_UNCLOSED_STRING, pos)


def skip_attribute_string(text: str, pos: int) -> int:
    end = text.find(text[pos], pos + 1)
    if end < 0:
        raise ScanError(ErrorCode.PARSE_UNCLOSED_STRING, pos)
    return end + 1


def skip_template(text: str, pos: int) -> int:
    i = pos + 1
    while i < len(text):
        c = text[i]
        if c == "\\":
            i += 2
            continue
        if c == "`":
            return i + 1
        if text.startswith("${", i):
            i = skip_group(text, i + 1)
            continue
        i += 1
    raise ScanError(ErrorCode.PARSE_UNCLOSED_TEMPLATE, pos)


def skip_line_comment(text: str, pos: int) -> int:
    end = text.find("\n", pos)
    return len(text) if end < 0 else end


def skip_block_comment(text: str, pos: int) -> int:
    end = text.find("*/", pos + 2)
    if end < 0:
        raise ScanError(ErrorCode.PARSE_UNCLOSED_COMMENT, pos)
    return end + 2


def skip_regex(text: str, pos: int) -> int:
    i = pos + 1
    in_class = False
    while i < len(text):
        c = text[i]
        if c == "\\":
            i += 2
            continue
        if c == "\n":
            break
        if in_class:
            if c == "]":
                in_class = False
        elif c == "[":
            in_class = True
        elif c == "/":
            return REGEX_FLAGS_RE.match(text, i + 1).end()
        i += 1
    raise ScanError(ErrorCode.PARSE_UNCLOSED_REGEX, pos)


def skip_group(text: str, pos: int) -> int:
    """Skips a balanced (), [] or {} region starting at `pos`."""
    stack = [BRACKET_PAIRS[text[pos]]]
    for token in iter_tokens(text, pos + 1):
        if token.kind != PUNCT:
            continue
        if token.value in BRACKET_PAIRS:
            stack.append(BRACKET_PAIRS[token.value])
        elif token.value in CLOSING_BRACKETS:
            if token.value != stack[-1]:
                raise ScanError(ErrorCode.PARSE_UNMATCHED_BRACKET, token.start, char=token.value)
            stack.pop()
            if not stack:
                return token.end
    raise ScanError(ErrorCode.PARSE_UNCLOSED_BRACKET, pos, char=text[pos])


def skip_space(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def skip_markup(text: str, pos: int, collect: Optional[List[Tuple[int, int]]] = None) -> int:
    """
    Skips one markup element or fragment starting at the `<` at `pos`.
    When `collect` is given, the inner range of every `{...}` container that
    belongs to this tree (attribute values, spreads and child slots) is
    appended to it.
    """
    i = pos + 1
    if text.startswith(">", i):
        i = _skip_markup_children(text, i + 1, pos, collect)
        if not text.startswith("</>", i):
            raise ScanError(ErrorCode.PARSE_MALFORMED_MARKUP, i, details="Expected '</>' to close the fragment.")
        return i + 3

    match = TAG_NAME_RE.match(text, i)
    if not match:
        raise ScanError(ErrorCode.PARSE_MALFORMED_MARKUP, i, details="Expected a tag name after '<'.")
    tag = match.group()
    i = match.end()

    while True:
        i = skip_space(text, i)
        if i >= len(text):
            raise ScanError(ErrorCode.PARSE_MALFORMED_MARKUP, pos, details=f"Tag '<{tag}>' is never closed.")
        if text.startswith("/>", i):
            return i + 2
        if text[i] == ">":
            break
        if text[i] == "{":
            i = _skip_container(text, i, collect)
            continue
        attribute = ATTR_NAME_RE.match(text, i)
        if not attribute:
            raise ScanError(ErrorCode.PARSE_MALFORMED_MARKUP, i, details=f"Unexpected character '{text[i]}' in tag '<{tag}>'.")
        i = skip_space(text, attribute.end())
        if text.startswith("=", i):
            i = skip_space(text, i + 1)
            if i < len(text) and text[i] in "'\"":
                i = skip_attribute_string(text, i)
            elif i < len(text) and text[i] == "{":
                i = _skip_container(text, i, collect)
            else:
                raise ScanError(ErrorCode.PARSE_MALFORMED_MARKUP, i, details=f"Expected a value for attribute '{attribute.group()}'.")

    i = _skip_markup_children(text, i + 1, pos, collect)
    closing = TAG_NAME_RE.match(text, skip_space(text, i + 2))
    found = closing.group() if closing else ""
    if found != tag:
        raise ScanError(ErrorCode.PARSE_MISMATCHED_TAG, i, found=found, expected=tag)
    end = skip_space(text, closing.end())
    if not text.startswith(">", end):
        raise ScanError(ErrorCode.PARSE_MALFORMED_MARKUP, end, details=f"Expected '>' to end '</{tag}'.")
    return end + 1


def _skip_container(text: str, pos: int, collect: Optional[List[Tuple[int, int]]]) -> int:
    end = skip_group(text, pos)
    if collect is not None:
        collect.append((pos + 1, end - 1))
    return end


def _skip_markup_children(text: str, i: int, open_pos: int, collect: Optional[List[Tuple[int, int]]]) -> int:
    while i < len(text):
        if text.startswith("</", i):
            return i
        c = text[i]
        if c == "{":
            i = _skip_container(text, i, collect)
        elif c == "<":
            i = skip_markup(text, i, collect)
        else:
            i += 1
    raise ScanError(ErrorCode.PARSE_MALFORMED_MARKUP, open_pos, details="The element is never closed.")


def markup_containers(text: str, pos: int) -> List[Tuple[int, int]]:
    """Returns the inner ranges of the `{...}` containers of the markup at `pos`."""
    collected: List[Tuple[int, int]] = []
    skip_markup(text, pos, collected)
    return collected


# --- Tokenization ---


def _expression_expected(prev: Optional[ScanToken]) -> bool:
    """True when the next token starts an operand rather than continuing one."""
    if prev is None:
        return True
    if prev.kind == PUNCT:
        return prev.value not in (")", "]", "}", "++", "--")
    if prev.kind == NAME:
        return prev.value in EXPRESSION_KEYWORDS
    return False


def _looks_like_markup(text: str, pos: int) -> bool:
    nxt = text[pos + 1 : pos + 2]
    return nxt == ">" or nxt.isalpha()


def _punctuator_length(text: str, pos: int) -> int:
    for punct in PUNCTUATORS:
        if text.startswith(punct, pos):
            return len(punct)
    return 1


def iter_tokens(text: str, pos: int = 0, end: Optional[int] = None) -> Iterator[ScanToken]:
    end = len(text) if end is None else end
    prev: Optional[ScanToken] = None
    newline = False
    i = pos
    while i < end:
        c = text[i]
        if c == "\n":
            newline = True
            i += 1
            continue
        if c.isspace():
            i += 1
            continue
        if text.startswith("//", i):
            i = skip_line_comment(text, i)
            continue
        if text.startswith("/*", i):
            j = skip_block_comment(text, i)
            newline = newline or "\n" in text[i:j]
            i = j
            continue

        identifier = IDENT_RE.match(text, i)
        if c in "'\"":
            kind, j = STRING, skip_string(text, i)
        elif c == "`":
            kind, j = TEMPLATE, skip_template(text, i)
        elif c in DIGITS or (c == "." and text[i + 1 : i + 2] in DIGITS and i + 1 < len(text)):
            kind, j = NUMBER, NUMBER_RE.match(text, i).end()
        elif identifier:
            kind, j = NAME, identifier.end()
        elif c == "<" and _expression_expected(prev) and _looks_like_markup(text, i):
            kind, j = MARKUP, skip_markup(text, i)
        elif c == "/" and _expression_expected(prev):
            kind, j = REGEX, skip_regex(text, i)
        else:
            kind, j = PUNCT, i + _punctuator_length(text, i)

        token = ScanToken(kind, text[i:j], i, j, newline)
        yield token
        prev = token
        newline = False
        i = j


def tokenize(text: str, pos: int = 0, end: Optional[int] = None) -> List[ScanToken]:
    return list(iter_tokens(text, pos, end))


def group_tokens(tokens: List[ScanToken]) -> List[Item]:
    """Nests tokens by bracket; raises ScanError on any imbalance."""
    root: List[Item] = []
    stack: List[Tuple[ScanToken, List[Item]]] = []
    current = root
    for token in tokens:
        if token.kind == PUNCT and token.value in BRACKET_PAIRS:
            stack.append((token, current))
            current = []
            continue
        if token.kind == PUNCT and token.value in CLOSING_BRACKETS:
            if not stack or BRACKET_PAIRS[stack[-1][0].value] != token.value:
                raise ScanError(ErrorCode.PARSE_UNMATCHED_BRACKET, token.start, char=token.value)
            opener, parent = stack.pop()
            parent.append(TokenGroup(opener, current, token))
            current = parent
            continue
        current.append(token)
    if stack:
        opener = stack[-1][0]
        raise ScanError(ErrorCode.PARSE_UNCLOSED_BRACKET, opener.start, char=opener.value)
    return root


def is_punct(item: Optional[Item], value: str) -> bool:
    return isinstance(item, ScanToken) and item.kind == PUNCT and item.value == value


def is_name(item: Optional[Item], value: Optional[str] = None) -> bool:
    return isinstance(item, ScanToken) and item.kind == NAME and (value is None or item.value == value)


def split_items(items: List[Item], separator: str = ",") -> List[List[Item]]:
    """Splits grouped items on a top-level punctuator, dropping empty segments."""
    segments: List[List[Item]] = [[]]
    for item in items:
        if is_punct(item, separator):
            segments.append([])
        else:
            segments[-1].append(item)
    return [segment for segment in segments if segment]

