"""
Lowers the normalized markup model to builder calls:

    element       ui.Div({ className: "x", on: { click: go } }, (ui: LayoutBuilder) => { ... })
    component     ui.append(Card({ title: "x" }))
    link          ui.append(Link({ to: "/about", text: "About" }))
    text          ui.Text({ value: ... })
    conditional   if (...) { ... }                        (static)
                  ui.When(<Ref<boolean>>, ...).Else(...)  (reactive)
    loop          items.forEach((item, index) => { ... }) (static)
                  ui.List({ items, key, render })         (reactive)
"""

import json
from typing import List, Optional, Set, Tuple

from ..config.config import BUILDER_PARAM, BUILDER_TYPE, LINK_COMPONENT, REACTIVE_READ_SUFFIX, ROLE_TYPES
from ..data_structures import Diagnostic
from ..exceptions import ErrorCode, make_diagnostic
from ..markup_analyser.classes import (
    AnalyzedChild,
    AnalyzedElement,
    AnalyzedText,
    CodegenPlaceholder,
    ConditionalBlock,
    LoopBlock,
    Prop,
    ReactiveExpression,
    TextExpression,
)
from .emitter import SourceWriter

CALLBACK = f"({BUILDER_PARAM}: {BUILDER_TYPE}) =>"


def string_literal(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _template_text(value: str) -> str:
    return value.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


def _builder_method(tag: str) -> str:
    return tag[:1].upper() + tag[1:]


def _merge(groups) -> List[str]:
    merged: List[str] = []
    for group in groups:
        merged.extend(name for name in group if name not in merged)
    return merged


class MarkupLowerer:
    def __init__(self, writer: SourceWriter):
        self.writer = writer
        self.runtime_names: Set[str] = set()
        self.diagnostics: List[Diagnostic] = []

    # --- Reactive values ---
    def derived(self, expression: str, dependencies: List[str], value_type: str) -> str:
        self.runtime_names.update({"watch", "Ref"})
        return f"watch([{', '.join(dependencies)}], () => {expression}) as Ref<{value_type}>"

    def _prop_value(self, prop: Prop) -> str:
        if prop.is_reactive:
            return self.derived(prop.value, prop.dependencies, ROLE_TYPES["attribute"])
        return prop.value

    def _text_value(self, children: List[AnalyzedChild]) -> str:
        """The `text:` value of an element whose children are all text."""
        if len(children) == 1 and isinstance(children[0], AnalyzedText):
            return string_literal(children[0].value)
        parts = []
        for child in children:
            if isinstance(child, AnalyzedText):
                parts.append(_template_text(child.value))
            else:
                parts.append("${" + child.expression.raw_expression + "}")
        template = "`" + "".join(parts) + "`"
        dependencies = _merge(c.expression.dependency_symbols for c in children if isinstance(c, TextExpression))
        if dependencies:
            return self.derived(template, dependencies, ROLE_TYPES["text"])
        return template

    # --- Nodes ---
    def lower_all(self, nodes: List[AnalyzedChild]):
        for node in nodes:
            self.lower(node)

    def lower(self, node: AnalyzedChild):
        if isinstance(node, AnalyzedElement):
            self._element(node)
        elif isinstance(node, AnalyzedText):
            self.writer.line(f"{BUILDER_PARAM}.Text({{ value: {string_literal(node.value)} }})")
        elif isinstance(node, TextExpression):
            self._text_expression(node.expression)
        elif isinstance(node, ConditionalBlock):
            self._conditional(node)
        elif isinstance(node, LoopBlock):
            self._loop(node)
        elif isinstance(node, CodegenPlaceholder):
            self.writer.line(f"{BUILDER_PARAM}.Text({{ value: {string_literal(node.raw_expression)} }})")

    def _text_expression(self, expression: ReactiveExpression):
        rendered = f"String({expression.raw_expression})"
        if expression.is_reactive:
            rendered = self.derived(rendered, expression.dependency_symbols, ROLE_TYPES["text"])
        self.writer.line(f"{BUILDER_PARAM}.Text({{ value: {rendered} }})")

    def _element(self, element: AnalyzedElement):
        if element.is_component:
            self._component(element)
            return
        if element.tag == "a" and any(p.name == "href" for p in element.props):
            self._link(element)
            return

        parts = []
        children = element.children
        text_only = bool(children) and all(isinstance(c, (AnalyzedText, TextExpression)) for c in children)
        if text_only:
            parts.append(f"text: {self._text_value(children)}")
        for prop in element.props:
            if prop.kind == "spread":
                parts.append(f"...{prop.value}")
            else:
                parts.append(f"{prop.name}: {self._prop_value(prop)}")
        if element.events:
            handlers = ", ".join(f"{event.event_name}: {event.handler_expression}" for event in element.events)
            parts.append(f"on: {{ {handlers} }}")

        config = "{ " + ", ".join(parts) + " }" if parts else "{}"
        call = f"{BUILDER_PARAM}.{_builder_method(element.tag)}({config}"
        if children and not text_only:
            self.writer.line(f"{call}, {CALLBACK} {{")
            with self.writer.indented():
                self.lower_all(children)
            self.writer.line("})")
        else:
            self.writer.line(call + ")")

    def _component(self, element: AnalyzedElement):
        if element.children:
            self.diagnostics.append(make_diagnostic(ErrorCode.CODEGEN_COMPONENT_CHILDREN, span=element.span, component=element.tag))
        parts = []
        for prop in element.props:
            if prop.kind == "spread":
                parts.append(f"...{prop.value}")
            else:
                parts.append(f"{prop.name}: {prop.value}")
        config = "{ " + ", ".join(parts) + " }" if parts else "{}"
        self.writer.line(f"{BUILDER_PARAM}.append({element.tag}({config}))")

    def _link(self, element: AnalyzedElement):
        self.runtime_names.add(LINK_COMPONENT)
        parts = []
        for prop in element.props:
            if prop.name == "href":
                parts.insert(0, f"to: {self._prop_value(prop)}")
            elif prop.name == "className":
                parts.append(f"className: {self._prop_value(prop)}")
        if element.children and all(isinstance(c, (AnalyzedText, TextExpression)) for c in element.children):
            parts.insert(1, f"text: {self._text_value(element.children)}")
        self.writer.line(f"{BUILDER_PARAM}.append({LINK_COMPONENT}({{ {', '.join(parts)} }}))")

    # --- Control flow ---
    def _conditional(self, block: ConditionalBlock):
        branches: List[Tuple[ReactiveExpression, List[AnalyzedChild]]] = [(block.condition_expression, block.then_branch)]
        branches.extend((branch.condition, branch.body) for branch in block.else_if_chain)
        self._branches(branches, block.else_branch)

    def _branches(self, branches, else_branch: Optional[List[AnalyzedChild]]):
        """
        Static branches become native `if` statements and reactive ones
        `ui.When(...)`. A static head with a reactive tail keeps the tail in
        the `else` of the native `if`.
        """
        if not any(condition.is_reactive for condition, _ in branches):
            self._static_conditional(branches, else_branch)
        elif branches[0][0].is_reactive:
            self._reactive_conditional(branches, else_branch)
        else:
            (condition, body), rest = branches[0], branches[1:]
            self.writer.line(f"if ({condition.raw_expression}) {{")
            with self.writer.indented():
                self.lower_all(body)
            self.writer.line("} else {")
            with self.writer.indented():
                self._branches(rest, else_branch)
            self.writer.line("}")

    def _static_conditional(self, branches, else_branch: Optional[List[AnalyzedChild]]):
        for i, (condition, body) in enumerate(branches):
            opener = "if" if i == 0 else "} else if"
            self.writer.line(f"{opener} ({condition.raw_expression}) {{")
            with self.writer.indented():
                self.lower_all(body)
        if else_branch is not None:
            self.writer.line("} else {")
            with self.writer.indented():
                self.lower_all(else_branch)
        self.writer.line("}")

    def _reactive_conditional(self, branches, else_branch: Optional[List[AnalyzedChild]]):
        (condition, body), rest = branches[0], branches[1:]
        guard = self.derived(condition.raw_expression, condition.dependency_symbols, ROLE_TYPES["condition"])
        self.writer.line(f"{BUILDER_PARAM}.When({guard}, {CALLBACK} {{")
        with self.writer.indented():
            self.lower_all(body)
        if not rest and else_branch is None:
            self.writer.line("})")
            return
        self.writer.line(f"}}).Else({CALLBACK} {{")
        with self.writer.indented():
            if rest:
                self._branches(rest, else_branch)
            else:
                self.lower_all(else_branch)
        self.writer.line("})")

    def _loop_items(self, loop: LoopBlock) -> str:
        iterable = loop.iterable_expression
        if len(loop.dependency_symbols) == 1:
            container = loop.dependency_symbols[0]
            if iterable in (container, container + REACTIVE_READ_SUFFIX):
                return container
        return self.derived(iterable, loop.dependency_symbols, "any[]")

    def _loop(self, loop: LoopBlock):
        item = loop.item_binding_name
        index = loop.index_binding_name or "index"

        if not loop.is_reactive_source:
            iterable = loop.iterable_expression
            # A line starting with '[' or '(' would continue the previous call.
            prefix = ";" if iterable.startswith(("[", "(")) else ""
            self.writer.line(f"{prefix}{iterable}.forEach(({item}, {index}) => {{")
            with self.writer.indented():
                self._loop_body(loop)
            self.writer.line("})")
            return

        if loop.key_expression is None:
            key = f"({item}, index) => index" if loop.index_binding_name is None else f"({item}, {index}) => {index}"
        else:
            key = f"({loop.key_parameter or item}) => {loop.key_expression}"

        self.writer.line(f"{BUILDER_PARAM}.List({{")
        with self.writer.indented():
            self.writer.line(f"items: {self._loop_items(loop)},")
            self.writer.line(f"key: {key},")
            self.writer.line(f"render: ({item}, {index}, {BUILDER_PARAM}: {BUILDER_TYPE}) => {{")
            with self.writer.indented():
                self._loop_body(loop)
            self.writer.line("},")
        self.writer.line("})")

    def _loop_body(self, loop: LoopBlock):
        if loop.body_prelude:
            self.writer.source(loop.body_prelude)
        self.lower_all(loop.body)
