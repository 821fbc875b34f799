"""
Declared-name and free-identifier extraction for code blocks.

This is a light binder over the scanner's grouped tokens, not a full scope
analysis: names bound anywhere inside a block (declarations, function and
arrow parameters, catch bindings) are treated as local to the whole block.
A local that shadows an outer name therefore hides that dependency.
"""

from typing import Iterable, List, Optional, Set

from ..config.config import GLOBAL_STOPLIST, JS_KEYWORDS, TEMPLATE_HELPERS, TS_TYPE_NAMES
from .scanner import MARKUP, NAME, Item, ScanToken, TokenGroup, group_tokens, is_name, is_punct, markup_containers, split_items, tokenize

DECLARATION_KEYWORDS = {"const", "let", "var", "function", "class"}
HELPER_NAMES = set(TEMPLATE_HELPERS.values())


def _before(segment: List[Item], separator: str) -> List[Item]:
    for i, item in enumerate(segment):
        if is_punct(item, separator):
            return segment[:i]
    return segment


def _after(segment: List[Item], separator: str) -> Optional[List[Item]]:
    for i, item in enumerate(segment):
        if is_punct(item, separator):
            return segment[i + 1 :]
    return None


def pattern_names(item: Item) -> List[str]:
    """Names bound by a binding target: a plain name or a destructuring pattern."""
    if isinstance(item, ScanToken):
        return [item.value] if item.kind == NAME else []

    names: List[str] = []
    for segment in split_items(item.items):
        segment = _before(segment, "=")
        if segment and is_punct(segment[0], "..."):
            segment = segment[1:]
        if item.bracket == "{":
            renamed = _after(segment, ":")
            if renamed is not None:
                segment = renamed
        elif item.bracket == "(":
            # Parameter lists carry type annotations after ':'.
            segment = _before(segment, ":")
        if segment:
            names.extend(pattern_names(segment[0]))
    return names


def parameter_segments(group: TokenGroup) -> List[List[Item]]:
    return split_items(group.items)


def _is_parameter_group(items: List[Item], i: int) -> bool:
    nxt = items[i + 1] if i + 1 < len(items) else None
    if is_punct(nxt, "=>"):
        return True
    prev = items[i - 1] if i >= 1 else None
    before = items[i - 2] if i >= 2 else None
    if is_name(prev, "function") or is_name(prev, "catch"):
        return True
    return is_name(prev) and (is_name(before, "function") or is_punct(before, "*"))


def _walk(items: List[Item], bound: Set[str], refs: List[str], source: str, bracket: Optional[str]):
    for i, item in enumerate(items):
        prev = items[i - 1] if i >= 1 else None
        nxt = items[i + 1] if i + 1 < len(items) else None

        if isinstance(item, TokenGroup):
            if item.bracket == "(" and _is_parameter_group(items, i):
                bound.update(pattern_names(item))
            elif item.bracket in "{[" and isinstance(prev, ScanToken) and prev.value in DECLARATION_KEYWORDS:
                bound.update(pattern_names(item))
            _walk(item.items, bound, refs, source, item.bracket)
            continue

        if item.kind == MARKUP:
            for start, end in markup_containers(source, item.start):
                _walk(group_tokens(tokenize(source, start, end)), bound, refs, source, None)
            continue

        if item.kind != NAME:
            continue
        if is_punct(prev, ".") or is_punct(prev, "?."):
            continue
        if bracket == "{" and is_punct(nxt, ":") and (prev is None or is_punct(prev, ",")):
            continue
        if isinstance(prev, ScanToken) and prev.kind == NAME and prev.value in DECLARATION_KEYWORDS:
            bound.add(item.value)
            continue
        if is_punct(nxt, "=>"):
            bound.add(item.value)
            continue
        refs.append(item.value)


def is_dependency_candidate(name: str) -> bool:
    return not (
        name in JS_KEYWORDS
        or name in TS_TYPE_NAMES
        or name in GLOBAL_STOPLIST
        or name in HELPER_NAMES
        or name[:1].isupper()
    )


def _unique(names: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for name in names:
        if name not in seen:
            seen.append(name)
    return seen


def free_identifiers(source: str, start: int = 0, end: Optional[int] = None, exclude: Iterable[str] = ()) -> List[str]:
    """
    Returns, in order of first use, the identifiers a region of source reads
    without binding them itself. Keywords, well-known globals, capitalized
    (type or constructor) names and property names are left out.
    """
    bound: Set[str] = set(exclude)
    refs: List[str] = []
    _walk(group_tokens(tokenize(source, start, end)), bound, refs, source, None)
    return _unique(name for name in refs if name not in bound and is_dependency_candidate(name))


def declared_names(binding: Item) -> List[str]:
    return _unique(pattern_names(binding))
