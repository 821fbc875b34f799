"""
The authoring idioms for conditionals and loops, as a closed set of
variants. Each variant knows how to recognise itself in a markup slot
(`match`) and how to turn itself into the one canonical block (`normalize`):

    conditionals: LogicalAnd, Ternary, ExplicitChain -> ConditionalBlock
    loops:        ReactiveMap, StaticMap, EachHelper -> LoopBlock

`normalize` receives the running `MarkupAnalyser`, which analyses the
branch and body markup and collects diagnostics.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

from ..config.config import TEMPLATE_HELPERS
from ..data_structures import Span
from ..exceptions import ErrorCode
from .classes import AnalyzedElement, CodegenPlaceholder, ConditionalBlock, ConditionalBranch, LoopBlock
from .expressions import Arrow, Call, Snippet, contains_markup, is_empty_branch, parse_arrow, parse_call, parse_map_call, split_logical_and, split_ternary, strip_parens

if TYPE_CHECKING:
    from .analyser import MarkupAnalyser

IF_HELPER = TEMPLATE_HELPERS["if"]
ELSEIF_HELPER = TEMPLATE_HELPERS["elseif"]
ELSE_HELPER = TEMPLATE_HELPERS["else"]
EACH_HELPER = TEMPLATE_HELPERS["each"]
CHAIN_HELPERS = (IF_HELPER, ELSEIF_HELPER, ELSE_HELPER)

# Accepted argument counts per helper.
HELPER_ARITY = {IF_HELPER: (2, 3), ELSEIF_HELPER: (2,), ELSE_HELPER: (1,), EACH_HELPER: (2, 3)}


def _conditional(idiom: str, branches: List[Tuple[Snippet, Snippet]], otherwise: Optional[Snippet], span: Span, analyser: "MarkupAnalyser") -> ConditionalBlock:
    conditions = [analyser.expression(condition, "condition") for condition, _ in branches]
    bodies = [analyser.branch(body) for _, body in branches]
    return ConditionalBlock(
        idiom=idiom,
        condition_expression=conditions[0],
        is_static=not any(condition.is_reactive for condition in conditions),
        then_branch=bodies[0],
        else_if_chain=[ConditionalBranch(condition=c, body=b) for c, b in zip(conditions[1:], bodies[1:])],
        else_branch=analyser.branch(otherwise) if otherwise is not None and not is_empty_branch(otherwise) else None,
        span=span,
    )


# --- Conditionals ---


@dataclass
class LogicalAnd:
    """`{cond && <markup>}`"""

    condition: Snippet
    body: Snippet
    span: Span

    @classmethod
    def match(cls, snippet: Snippet) -> Optional["LogicalAnd"]:
        parts = split_logical_and(snippet)
        if parts is None or not contains_markup(parts[1]):
            return None
        return cls(parts[0], parts[1], snippet.span)

    def normalize(self, analyser: "MarkupAnalyser") -> ConditionalBlock:
        return _conditional("logical-and", [(self.condition, self.body)], None, self.span, analyser)


@dataclass
class Ternary:
    """`{a ? <A/> : b ? <B/> : <C/>}`; a chained ternary becomes an else-if chain."""

    branches: List[Tuple[Snippet, Snippet]]
    otherwise: Snippet
    span: Span

    @classmethod
    def match(cls, snippet: Snippet) -> Optional["Ternary"]:
        parts = split_ternary(snippet)
        if parts is None:
            return None
        branches = [(parts[0], parts[1])]
        otherwise = parts[2]
        while True:
            nested = split_ternary(strip_parens(otherwise))
            if nested is None:
                break
            branches.append((nested[0], nested[1]))
            otherwise = nested[2]
        if not any(contains_markup(body) for _, body in branches) and not contains_markup(otherwise):
            return None
        return cls(branches, otherwise, snippet.span)

    def normalize(self, analyser: "MarkupAnalyser") -> ConditionalBlock:
        return _conditional("ternary", self.branches, self.otherwise, self.span, analyser)


@dataclass
class ExplicitChain:
    """`{$if(a, <A/>)}{$elseif(b, <B/>)}{$else(<C/>)}` as adjacent slots."""

    calls: List[Call]
    span: Span

    def normalize(self, analyser: "MarkupAnalyser") -> ConditionalBlock:
        first = self.calls[0]
        branches = [(first.arguments[0], first.arguments[1])]
        otherwise = first.arguments[2] if len(first.arguments) == 3 else None
        for call in self.calls[1:]:
            if call.callee == ELSEIF_HELPER:
                branches.append((call.arguments[0], call.arguments[1]))
            else:
                otherwise = call.arguments[0]
        return _conditional("explicit-chain", branches, otherwise, self.span, analyser)


# --- Loops ---


def _key_from_body(body) -> Optional[str]:
    for node in body:
        if isinstance(node, AnalyzedElement):
            return node.key
    return None


def _loop(
    idiom: str,
    iterable: Snippet,
    callback: Arrow,
    key_callback: Optional[Arrow],
    reactive: bool,
    dependencies: List[str],
    span: Span,
    analyser: "MarkupAnalyser",
) -> LoopBlock:
    body = analyser.loop_body(callback.body, callback.parameter_names)

    key_expression, key_parameter = None, None
    if key_callback is not None:
        key_expression = key_callback.body.text
        key_parameter = key_callback.parameters[0] if key_callback.parameters else None
    else:
        key_expression = _key_from_body(body)

    if reactive and key_expression is None:
        analyser.report(ErrorCode.MARKUP_MISSING_KEY, span, source=iterable.text)

    return LoopBlock(
        idiom=idiom,
        iterable_expression=iterable.text,
        is_reactive_source=reactive,
        dependency_symbols=dependencies,
        item_binding_name=callback.parameters[0] if callback.parameters else "item",
        index_binding_name=callback.parameters[1] if len(callback.parameters) > 1 else None,
        key_expression=key_expression,
        key_parameter=key_parameter,
        body_prelude=callback.prelude.text if callback.prelude is not None and callback.prelude.text else None,
        body=body,
        span=span,
    )


@dataclass
class _MapLoop:
    iterable: Snippet
    callback: Arrow
    dependencies: List[str]
    span: Span

    idiom = ""

    def normalize(self, analyser: "MarkupAnalyser") -> LoopBlock:
        return _loop(self.idiom, self.iterable, self.callback, None, bool(self.dependencies), self.dependencies, self.span, analyser)


class ReactiveMap(_MapLoop):
    """`{items.value.map(item => <li/>)}` over a reactive container."""

    idiom = "reactive-map"


class StaticMap(_MapLoop):
    """`{['a', 'b'].map(item => <li/>)}` or a map over a plain value."""

    idiom = "static-map"


@dataclass
class EachHelper:
    """`{$each(items, (item, index) => <li/>, (item) => item.id)}`"""

    call: Call
    span: Span

    def normalize(self, analyser: "MarkupAnalyser") -> Union[LoopBlock, CodegenPlaceholder]:
        arguments = self.call.arguments
        if not has_helper_arity(self.call):
            return analyser.placeholder(
                ErrorCode.MARKUP_MALFORMED_HELPER,
                self.call.snippet,
                helper=EACH_HELPER,
                details=f"expected 2 or 3 arguments, got {len(arguments)}",
            )
        callback = parse_arrow(arguments[1])
        key_callback = parse_arrow(arguments[2]) if len(arguments) == 3 else None
        if callback is None or (len(arguments) == 3 and key_callback is None):
            return analyser.placeholder(
                ErrorCode.MARKUP_MALFORMED_HELPER,
                self.call.snippet,
                helper=EACH_HELPER,
                details="the render and key arguments must be arrow functions",
            )

        iterable = arguments[0]
        dependencies = analyser.dependencies(iterable)
        if not dependencies:
            analyser.report(ErrorCode.MARKUP_NON_REACTIVE_EACH, self.span, source=iterable.text)
        return _loop("each-helper", iterable, callback, key_callback, bool(dependencies), dependencies, self.span, analyser)


def match_loop(snippet: Snippet, analyser: "MarkupAnalyser") -> Optional[Union[ReactiveMap, StaticMap, EachHelper]]:
    call = parse_call(snippet)
    if call is not None and call.callee == EACH_HELPER:
        return EachHelper(call, snippet.span)

    map_call = parse_map_call(snippet)
    if map_call is None:
        return None
    callback = parse_arrow(map_call.callback)
    if callback is None or not contains_markup(callback.body):
        return None
    dependencies = analyser.dependencies(map_call.iterable)
    variant = ReactiveMap if dependencies else StaticMap
    return variant(map_call.iterable, callback, dependencies, snippet.span)


def chain_call(snippet: Snippet) -> Optional[Call]:
    """Returns the call when the slot holds one of the conditional helpers."""
    call = parse_call(strip_parens(snippet))
    if call is None or call.callee not in CHAIN_HELPERS:
        return None
    return call


def has_helper_arity(call: Call) -> bool:
    return len(call.arguments) in HELPER_ARITY[call.callee]
