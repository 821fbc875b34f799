"""
Helpers that take apart the expressions found in markup slots: logical-and
and ternary splits, calls, `.map` calls and arrow callbacks. Everything works
on `Snippet`s, pieces of source text that remember where they sit in the
file so nested markup is parsed with correct positions.
"""

from dataclasses import dataclass
from typing import List, Optional, Set, Tuple

from ..config.config import REACTIVE_READ_SUFFIX
from ..data_structures import Span
from ..parser.classes import MarkupNode
from ..parser.parser import parse_markup
from ..parser.scanner import MARKUP, NAME, Item, ScanToken, TokenGroup, group_tokens, is_name, is_punct, split_items, tokenize
from ..parser.symbols import free_identifiers, pattern_names

EMPTY_BRANCH_VALUES = {"null", "undefined", "false", "''", '""'}


@dataclass(frozen=True)
class Snippet:
    text: str
    line: int = 1
    column: int = 1
    offset: int = 0
    file_path: str = "<stdin>"

    @classmethod
    def from_span(cls, text: str, span: Span) -> "Snippet":
        return cls(text, span.s_line, span.s_col, span.s_pos, span.file_path or "<stdin>")

    def sub(self, start: int, end: Optional[int] = None) -> "Snippet":
        end = len(self.text) if end is None else end
        before = self.text[:start]
        newlines = before.count("\n")
        if newlines:
            line, column = self.line + newlines, start - before.rfind("\n")
        else:
            line, column = self.line, self.column + start
        return Snippet(self.text[start:end], line, column, self.offset + start, self.file_path)

    def strip(self) -> "Snippet":
        start = len(self.text) - len(self.text.lstrip())
        end = max(start, len(self.text.rstrip()))
        return self.sub(start, end)

    @property
    def origin(self) -> Tuple[int, int, int]:
        return self.line, self.column, self.offset

    @property
    def span(self) -> Span:
        end = self.sub(len(self.text))
        return Span(
            s_line=self.line,
            s_col=self.column,
            e_line=end.line,
            e_col=end.column,
            s_pos=self.offset,
            e_pos=end.offset,
            file_path=self.file_path,
        )

    def items(self) -> List[Item]:
        return group_tokens(tokenize(self.text))

    def between(self, first: Item, last: Item) -> "Snippet":
        return self.sub(first.start, last.end).strip()


def strip_parens(snippet: Snippet) -> Snippet:
    snippet = snippet.strip()
    while True:
        items = snippet.items()
        if len(items) != 1 or not isinstance(items[0], TokenGroup) or items[0].bracket != "(":
            return snippet
        snippet = snippet.sub(items[0].open.end, items[0].close.start).strip()


def is_empty_branch(snippet: Snippet) -> bool:
    return strip_parens(snippet).text in EMPTY_BRANCH_VALUES


def markup_in(snippet: Snippet) -> Optional[MarkupNode]:
    """Parses the snippet as markup when it is a single (parenthesized) markup tree."""
    snippet = strip_parens(snippet)
    tokens = tokenize(snippet.text)
    if len(tokens) != 1 or tokens[0].kind != MARKUP:
        return None
    return parse_markup(snippet.text, snippet.file_path, snippet.origin)


def contains_markup(snippet: Snippet) -> bool:
    return any(token.kind == MARKUP for token in tokenize(snippet.text))


# --- Operators ---


def split_logical_and(snippet: Snippet) -> Optional[Tuple[Snippet, Snippet]]:
    """Splits `cond && <markup>` on its last top-level `&&`."""
    items = snippet.items()
    positions = [i for i, item in enumerate(items) if is_punct(item, "&&")]
    if not positions or any(is_punct(item, "||") or is_punct(item, "??") or is_punct(item, "?") for item in items):
        return None
    i = positions[-1]
    if i == 0 or i == len(items) - 1:
        return None
    return snippet.between(items[0], items[i - 1]), snippet.between(items[i + 1], items[-1])


def split_ternary(snippet: Snippet) -> Optional[Tuple[Snippet, Snippet, Snippet]]:
    """Splits `cond ? a : b` on its first top-level `?` and the matching `:`."""
    items = snippet.items()
    question = next((i for i, item in enumerate(items) if is_punct(item, "?")), None)
    if question is None or question == 0:
        return None
    depth = 0
    for i in range(question + 1, len(items)):
        if is_punct(items[i], "?"):
            depth += 1
        elif is_punct(items[i], ":"):
            if depth:
                depth -= 1
                continue
            if i == question + 1 or i == len(items) - 1:
                return None
            return (
                snippet.between(items[0], items[question - 1]),
                snippet.between(items[question + 1], items[i - 1]),
                snippet.between(items[i + 1], items[-1]),
            )
    return None


# --- Calls ---


@dataclass(frozen=True)
class Call:
    callee: str
    arguments: List[Snippet]
    snippet: Snippet


def parse_call(snippet: Snippet) -> Optional[Call]:
    """Recognises `callee(args)` where the callee is a (dotted) name."""
    items = snippet.items()
    if len(items) < 2 or not isinstance(items[-1], TokenGroup) or items[-1].bracket != "(":
        return None
    callee_items = items[:-1]
    for i, item in enumerate(callee_items):
        expected_name = i % 2 == 0
        if expected_name and not is_name(item):
            return None
        if not expected_name and not is_punct(item, "."):
            return None
    if not is_name(callee_items[-1]):
        return None
    group = items[-1]
    arguments = [snippet.between(segment[0], segment[-1]) for segment in split_items(group.items)]
    return Call(snippet.text[: group.start].strip(), arguments, snippet)


@dataclass(frozen=True)
class MapCall:
    iterable: Snippet
    callback: Snippet


def parse_map_call(snippet: Snippet) -> Optional[MapCall]:
    """Recognises `<iterable>.map(callback)`."""
    items = snippet.items()
    if len(items) < 4 or not isinstance(items[-1], TokenGroup) or items[-1].bracket != "(":
        return None
    if not is_name(items[-2], "map") or not (is_punct(items[-3], ".") or is_punct(items[-3], "?.")):
        return None
    arguments = split_items(items[-1].items)
    if len(arguments) != 1:
        return None
    callback = arguments[0]
    return MapCall(snippet.between(items[0], items[-4]), snippet.between(callback[0], callback[-1]))


@dataclass(frozen=True)
class Arrow:
    parameters: List[str]
    parameter_names: List[str]
    body: Snippet
    prelude: Optional[Snippet] = None


def parse_arrow(snippet: Snippet) -> Optional[Arrow]:
    """
    Recognises `x => body`, `(x, i) => body` and `(x) => { ...; return body }`.
    For a block body, `body` is the returned expression.
    """
    items = snippet.items()
    if len(items) < 3 or not is_punct(items[1], "=>"):
        return None
    head = items[0]
    if is_name(head):
        parameters, names = [head.value], [head.value]
    elif isinstance(head, TokenGroup) and head.bracket == "(":
        segments = split_items(head.items)
        parameters = [snippet.between(segment[0], segment[-1]).text for segment in segments]
        names = pattern_names(head)
    else:
        return None

    body_items = items[2:]
    if len(body_items) == 1 and isinstance(body_items[0], TokenGroup) and body_items[0].bracket == "{":
        block = body_items[0]
        position = next((i for i, item in enumerate(block.items) if is_name(item, "return")), None)
        if position is None or position + 1 == len(block.items):
            return None
        statement = block.items[position + 1 :]
        end = next((i for i, item in enumerate(statement) if is_punct(item, ";")), len(statement))
        if end == 0:
            return None
        prelude = snippet.sub(block.open.end, block.items[position].start).strip() if position else None
        return Arrow(parameters, names, snippet.between(statement[0], statement[end - 1]), prelude)
    return Arrow(parameters, names, snippet.between(body_items[0], body_items[-1]))


# --- Dependencies ---


def value_roots(snippet: Snippet) -> List[str]:
    """Names read as `X.value`, in order of first use."""
    tokens = tokenize(snippet.text)
    roots: List[str] = []
    suffix = REACTIVE_READ_SUFFIX.lstrip(".")
    for i, token in enumerate(tokens[:-2]):
        if token.kind != NAME:
            continue
        previous: Optional[ScanToken] = tokens[i - 1] if i else None
        if previous is not None and previous.value in (".", "?."):
            continue
        if tokens[i + 1].value in (".", "?.") and is_name(tokens[i + 2], suffix) and token.value not in roots:
            roots.append(token.value)
    return roots


def dependencies(snippet: Snippet, reactive_symbols: Set[str], bound: Set[str]) -> List[str]:
    """
    The reactive containers an expression reads: free names that are known
    containers, plus any name read through `.value`. Names bound by an
    enclosing loop callback are never containers.
    """
    roots = set(value_roots(snippet))
    return [name for name in free_identifiers(snippet.text, exclude=bound) if name in reactive_symbols or name in roots]
