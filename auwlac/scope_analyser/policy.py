"""
Scope policies decide where each code block of a component file ends up.

Both policies send top-level blocks to the component scope and
component-body blocks to the UI scope (the render callback). They differ in
where the component scope lives:

- `SharedScopePolicy`: at module level, shared by every component of the file.
- `PageScopePolicy`: inside the page function, so each page instance gets
  its own copy of the top-level state. Other components of the file stay at
  module level and cannot reach it.
"""

from typing import Dict, List, Tuple

from ..data_structures import Diagnostic, Span
from ..exceptions import ErrorCode, make_diagnostic
from ..parser.classes import CodeBlock, MarkupElement, MarkupExpression, MarkupFragment, MarkupNode, PageMetadata
from ..parser.symbols import free_identifiers
from .classes import ComponentScope

COMPONENT_SCOPE = "component"
UI_SCOPE = "ui"

# Where the component scope is emitted.
MODULE_PLACEMENT = "module"
PAGE_FUNCTION_PLACEMENT = "page-function"


def _markup_references(node: MarkupNode, found: Dict[str, Span]):
    if isinstance(node, MarkupExpression):
        for name in free_identifiers(node.expression):
            found.setdefault(name, node.span)
    elif isinstance(node, (MarkupElement, MarkupFragment)):
        for attribute in getattr(node, "attributes", []):
            if attribute.kind in ("expression", "spread"):
                for name in free_identifiers(attribute.value):
                    found.setdefault(name, attribute.span)
        for child in node.children:
            _markup_references(child, found)


def component_references(scope: ComponentScope) -> List[Tuple[str, Span]]:
    """The free names a component reads from outside itself, each with its first location."""
    component = scope.component
    local = {name for parameter in component.parameters for name in parameter.names}
    local.update(name for block in scope.ui_scope_blocks for name in block.declared_symbols)

    found: Dict[str, Span] = {}
    for block in scope.ui_scope_blocks:
        for name in block.referenced_symbols:
            found.setdefault(name, block.span)
    if component.returned_markup is not None:
        _markup_references(component.returned_markup, found)
    return [(name, span) for name, span in found.items() if name not in local]


class ScopePolicy:
    name = ""
    component_scope_placement = ""

    def target_scope(self, block: CodeBlock) -> str:
        return COMPONENT_SCOPE if block.origin == "top-level" else UI_SCOPE

    def prepare_component_block(self, block: CodeBlock, diagnostics: List[Diagnostic]) -> CodeBlock:
        return block

    def check_secondary_component(self, scope: ComponentScope, main_name: str, component_blocks: List[CodeBlock], diagnostics: List[Diagnostic]):
        """Reports component-scope names another component of the file cannot reach."""

    def __repr__(self):
        return f"{type(self).__name__}()"


class SharedScopePolicy(ScopePolicy):
    name = "shared"
    component_scope_placement = MODULE_PLACEMENT


class PageScopePolicy(ScopePolicy):
    name = "page"
    component_scope_placement = PAGE_FUNCTION_PLACEMENT

    def prepare_component_block(self, block: CodeBlock, diagnostics: List[Diagnostic]) -> CodeBlock:
        if not block.is_exported:
            return block
        # `export` is not valid inside the page function.
        diagnostics.append(make_diagnostic(ErrorCode.SCOPE_EXPORT_RELOCATED, span=block.span, symbol=block.declared_symbol or block.source_text))
        return block.model_copy(update={"is_exported": False})

    def check_secondary_component(self, scope: ComponentScope, main_name: str, component_blocks: List[CodeBlock], diagnostics: List[Diagnostic]):
        page_names = {name for block in component_blocks for name in block.declared_symbols}
        for name, span in component_references(scope):
            if name in page_names:
                diagnostics.append(
                    make_diagnostic(
                        ErrorCode.SCOPE_UNREACHABLE_PAGE_SYMBOL,
                        span=span,
                        symbol=name,
                        page=main_name,
                        component=scope.component.name,
                    )
                )


def policy_for(metadata: PageMetadata) -> ScopePolicy:
    return PageScopePolicy() if metadata.is_page else SharedScopePolicy()
