import json
from typing import Dict, Iterable, List, Optional, Set

from ..config.config import ATTRIBUTE_RENAMES, EVENT_PREFIX
from ..data_structures import Diagnostic, Span
from ..exceptions import ErrorCode, make_diagnostic
from ..logging import get_logger
from ..parser.classes import CodeBlock, ComponentDecl, MarkupAttribute, MarkupElement, MarkupExpression, MarkupFragment, MarkupNode, MarkupText, SourceDocument
from ..parser.scanner import ScanError
from .classes import AnalyzedChild, AnalyzedComponent, AnalyzedElement, AnalyzedText, CodegenPlaceholder, Event, Prop, ReactiveExpression, TextExpression
from .expressions import Snippet, contains_markup, dependencies, is_empty_branch, markup_in, parse_arrow, strip_parens
from .idioms import ELSE_HELPER, IF_HELPER, ExplicitChain, LogicalAnd, Ternary, chain_call, has_helper_arity, match_loop

logger = get_logger("markup")


def collect_reactive_symbols(blocks: Iterable[CodeBlock]) -> List[str]:
    """Names declared by `ref(...)`, `computed(...)` and `watch(...)` initializers."""
    names: List[str] = []
    for block in blocks:
        if block.is_reactive_container:
            names.extend(name for name in block.declared_symbols if name not in names)
    return names


def _is_event(name: str) -> bool:
    return name.startswith(EVENT_PREFIX) and len(name) > len(EVENT_PREFIX) and name[len(EVENT_PREFIX)].isupper()


class MarkupAnalyser:
    """
    Normalizes the markup tree returned by one component.

    Static values stay inline; expressions get the set of reactive containers
    they read. Conditionals and loops are recognised through the idiom
    variants in `idioms.py`. Recoverable problems are recorded as
    diagnostics and, where needed, replaced by inert placeholders.
    """

    def __init__(self, component: ComponentDecl, reactive_symbols: Iterable[str] = ()):
        self.component = component
        self.reactive_symbols: Set[str] = set(reactive_symbols)
        self.diagnostics: List[Diagnostic] = []
        self.bound: Set[str] = set()

    def run(self) -> AnalyzedComponent:
        markup = self.component.returned_markup
        root = self._node(markup) if markup is not None else []
        logger.debug("Analysed markup of %s: %d root node(s), %d diagnostic(s)", self.component.name, len(root), len(self.diagnostics))
        return AnalyzedComponent(
            name=self.component.name,
            root=root,
            reactive_symbols=sorted(self.reactive_symbols),
            diagnostics=self.diagnostics,
        )

    # --- Services used by the idiom variants ---
    def report(self, code: ErrorCode, span: Optional[Span], **kwargs):
        self.diagnostics.append(make_diagnostic(code, span=span, **kwargs))

    def placeholder(self, code: ErrorCode, snippet: Snippet, **kwargs) -> CodegenPlaceholder:
        diagnostic = make_diagnostic(code, span=snippet.span, **kwargs)
        self.diagnostics.append(diagnostic)
        return CodegenPlaceholder(raw_expression=snippet.text, reason=diagnostic.message, span=snippet.span)

    def dependencies(self, snippet: Snippet) -> List[str]:
        return dependencies(snippet, self.reactive_symbols, self.bound)

    def expression(self, snippet: Snippet, role: str) -> ReactiveExpression:
        return ReactiveExpression(raw_expression=snippet.text, dependency_symbols=self.dependencies(snippet), role=role)

    def branch(self, snippet: Snippet) -> List[AnalyzedChild]:
        """Analyses a conditional branch: markup, or a parameterless arrow returning markup."""
        if is_empty_branch(snippet):
            return []
        arrow = parse_arrow(strip_parens(snippet))
        if arrow is not None and not arrow.parameters:
            snippet = arrow.body
        return self._slot(snippet)

    def loop_body(self, snippet: Snippet, names: Iterable[str]) -> List[AnalyzedChild]:
        outer = self.bound
        self.bound = outer | set(names)
        try:
            return self._slot(snippet)
        finally:
            self.bound = outer

    # --- Tree walk ---
    def _node(self, node: MarkupNode) -> List[AnalyzedChild]:
        if isinstance(node, MarkupElement):
            return [self._element(node)]
        if isinstance(node, MarkupFragment):
            return self._children(node.children)
        if isinstance(node, MarkupText):
            return [AnalyzedText(value=node.value, span=node.span)]
        return self._slot(Snippet.from_span(node.expression, node.span))

    def _element(self, element: MarkupElement) -> AnalyzedElement:
        is_component = element.tag[:1].isupper()
        props: List[Prop] = []
        events: List[Event] = []
        key: Optional[str] = None

        for attribute in element.attributes:
            if attribute.kind == "spread":
                props.append(Prop(kind="spread", value=attribute.value))
                continue
            if attribute.name == "key":
                key = attribute.value.strip() if attribute.kind == "expression" else json.dumps(attribute.value or "", ensure_ascii=False)
                continue
            if not is_component and _is_event(attribute.name) and attribute.kind == "expression":
                events.append(Event(event_name=attribute.name[len(EVENT_PREFIX) :].lower(), handler_expression=attribute.value.strip()))
                continue
            props.append(self._prop(attribute, is_component))

        return AnalyzedElement(
            tag=element.tag,
            props=props,
            events=events,
            children=self._children(element.children),
            key=key,
            is_component=is_component,
            span=element.span,
        )

    def _prop(self, attribute: MarkupAttribute, is_component: bool) -> Prop:
        name = attribute.name if is_component else ATTRIBUTE_RENAMES.get(attribute.name, attribute.name)
        if attribute.kind == "string":
            return Prop(name=name, kind="string", value=json.dumps(attribute.value, ensure_ascii=False))
        if attribute.kind == "boolean":
            return Prop(name=name, kind="boolean", value="true")
        expression = self.expression(Snippet.from_span(attribute.value, attribute.span).strip(), "attribute")
        return Prop(
            name=name,
            kind="expression",
            value=expression.raw_expression,
            is_reactive=expression.is_reactive,
            dependencies=expression.dependency_symbols,
        )

    def _children(self, nodes: List[MarkupNode]) -> List[AnalyzedChild]:
        """
        Analyses sibling nodes. Adjacent `$if` / `$elseif` / `$else` slots
        form one chain. Comment-only slots never reach this point, and
        whitespace-only text between members is dropped, so neither separates
        chain members. Any other sibling ends the chain.
        """
        result: List[AnalyzedChild] = []
        chain = []
        chain_closed = False
        # Whitespace seen while a chain is open; kept only if the chain ends.
        pending: List[MarkupText] = []

        def flush():
            nonlocal chain_closed
            if chain:
                span = chain[0].snippet.span.model_copy(update={"e_line": chain[-1].snippet.span.e_line, "e_col": chain[-1].snippet.span.e_col, "e_pos": chain[-1].snippet.span.e_pos})
                result.append(ExplicitChain(list(chain), span).normalize(self))
                chain.clear()
            chain_closed = False
            for text in pending:
                result.extend(self._node(text))
            pending.clear()

        for node in nodes:
            if chain and isinstance(node, MarkupText) and not node.value.strip():
                pending.append(node)
                continue
            if isinstance(node, MarkupExpression):
                snippet = Snippet.from_span(node.expression, node.span)
                call = chain_call(snippet)
                if call is not None:
                    if not has_helper_arity(call):
                        flush()
                        result.append(self.placeholder(ErrorCode.MARKUP_MALFORMED_HELPER, snippet, helper=call.callee, details=f"unexpected number of arguments ({len(call.arguments)})"))
                    elif call.callee == IF_HELPER:
                        flush()
                        chain.append(call)
                        chain_closed = len(call.arguments) == 3
                    elif not chain or chain_closed:
                        flush()
                        result.append(self.placeholder(ErrorCode.MARKUP_ORPHAN_CONDITIONAL, snippet, helper=call.callee))
                    else:
                        chain.append(call)
                        chain_closed = call.callee == ELSE_HELPER
                        pending.clear()
                    continue
            flush()
            result.extend(self._node(node))

        flush()
        return result

    def _slot(self, snippet: Snippet) -> List[AnalyzedChild]:
        snippet = strip_parens(snippet)
        if not snippet.text:
            return []
        try:
            markup = markup_in(snippet)
            if markup is not None:
                return self._node(markup)

            for variant in (Ternary, LogicalAnd):
                conditional = variant.match(snippet)
                if conditional is not None:
                    return [conditional.normalize(self)]

            loop = match_loop(snippet, self)
            if loop is not None:
                return [loop.normalize(self)]

            call = chain_call(snippet)
            if call is not None:
                if call.callee == IF_HELPER and has_helper_arity(call):
                    return [ExplicitChain([call], snippet.span).normalize(self)]
                return [self.placeholder(ErrorCode.MARKUP_ORPHAN_CONDITIONAL, snippet, helper=call.callee)]

            if contains_markup(snippet):
                return [self.placeholder(ErrorCode.CODEGEN_UNSUPPORTED_EXPRESSION, snippet, expression=snippet.text)]
        except ScanError:
            return [self.placeholder(ErrorCode.CODEGEN_UNSUPPORTED_EXPRESSION, snippet, expression=snippet.text)]

        return [TextExpression(expression=self.expression(snippet, "text"), span=snippet.span)]


def analyse_markup(component: ComponentDecl, reactive_symbols: Iterable[str] = ()) -> AnalyzedComponent:
    """Normalizes the returned markup of `component`."""
    return MarkupAnalyser(component, reactive_symbols).run()


def analyse_components(document: SourceDocument) -> Dict[str, AnalyzedComponent]:
    """
    Analyses the markup of every component of a document. A component sees
    the reactive containers declared at top level and in its own body.
    """
    shared = collect_reactive_symbols(document.top_level_blocks)
    analyzed: Dict[str, AnalyzedComponent] = {}
    for component in document.components:
        reactive = shared + collect_reactive_symbols(component.body_blocks)
        analyzed[component.name] = analyse_markup(component, reactive)
    return analyzed
