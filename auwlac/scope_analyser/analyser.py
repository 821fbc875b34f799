from typing import List, Optional

from ..data_structures import Diagnostic
from ..exceptions import ErrorCode, make_diagnostic
from ..logging import get_logger
from ..parser.classes import CodeBlock, ComponentDecl, SourceDocument
from .classes import ComponentScope, ScopedDocument
from .ordering import order_blocks
from .policy import COMPONENT_SCOPE, ScopePolicy, policy_for

logger = get_logger("scope")


class ScopeAnalyser:
    """
    Partitions a parsed document into the component scope and the UI scope
    of each component, and orders every scope by dependency:
    - Applies the scope policy (shared module scope or per-page scope).
    - Orders each scope so declarations precede their uses.
    - Reports component-scope code that reads UI-scope symbols.
    """

    def __init__(self, document: SourceDocument, policy: Optional[ScopePolicy] = None):
        self.document = document
        self.policy = policy or policy_for(document.metadata)
        self.diagnostics: List[Diagnostic] = []

    def run(self) -> ScopedDocument:
        main = self._main_component()

        component_blocks: List[CodeBlock] = []
        ui_blocks: List[CodeBlock] = []
        for block in self.document.top_level_blocks + main.body_blocks:
            if self.policy.target_scope(block) == COMPONENT_SCOPE:
                component_blocks.append(self.policy.prepare_component_block(block, self.diagnostics))
            else:
                ui_blocks.append(block)

        component_blocks = self._order(component_blocks)
        ui_blocks = self._order(ui_blocks)

        secondary = [
            ComponentScope(component=component, ui_scope_blocks=self._order(component.body_blocks))
            for component in self.document.components
            if component is not main
        ]

        self._check_ui_references(component_blocks, [(main, ui_blocks)] + [(s.component, s.ui_scope_blocks) for s in secondary])
        for scope in secondary:
            self.policy.check_secondary_component(scope, main.name, component_blocks, self.diagnostics)

        logger.debug(
            "Scoped %s with %s: component scope %s, UI scope %s",
            self.document.file_path,
            self.policy.name,
            [b.declared_symbol or b.kind for b in component_blocks],
            [b.declared_symbol or b.kind for b in ui_blocks],
        )

        return ScopedDocument(
            file_path=self.document.file_path,
            policy=self.policy.name,
            component_scope_placement=self.policy.component_scope_placement,
            metadata=self.document.metadata,
            imports=self.document.imports,
            module_statements=self.document.module_statements,
            component_scope_blocks=component_blocks,
            ui_scope_blocks=ui_blocks,
            main_component=main,
            secondary_components=secondary,
            diagnostics=self.diagnostics,
        )

    def _main_component(self) -> ComponentDecl:
        components = self.document.components
        return (
            self.document.default_component
            or next((c for c in components if c.is_exported), None)
            or components[0]
        )

    def _order(self, blocks: List[CodeBlock]) -> List[CodeBlock]:
        ordered, diagnostics = order_blocks(blocks)
        self.diagnostics.extend(diagnostics)
        return ordered

    def _check_ui_references(self, component_blocks: List[CodeBlock], ui_scopes):
        component_names = {name for block in component_blocks for name in block.declared_symbols}
        ui_owner = {}
        for component, blocks in ui_scopes:
            for block in blocks:
                for name in block.declared_symbols:
                    ui_owner.setdefault(name, component.name)

        for block in component_blocks:
            for name in block.referenced_symbols:
                if name in component_names or name not in ui_owner:
                    continue
                self.diagnostics.append(
                    make_diagnostic(
                        ErrorCode.SCOPE_UI_REFERENCE,
                        span=block.span,
                        symbol=name,
                        component=ui_owner[name],
                        owner=block.declared_symbol or block.source_text.split("\n", 1)[0],
                    )
                )


def analyse_scopes(document: SourceDocument, policy: Optional[ScopePolicy] = None) -> ScopedDocument:
    """Runs the scope analysis of a parsed document."""
    return ScopeAnalyser(document, policy).run()
