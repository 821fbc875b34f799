import re
from typing import Dict, List, Optional

from pydantic import BaseModel

from ..config.config import BUILDER_TYPE, LINK_COMPONENT, RUNTIME_MODULE, RUNTIME_TYPE_IMPORTS, RUNTIME_VALUE_IMPORTS, TEMPLATE_HELPER_MODULE
from ..data_structures import Diagnostic
from ..exceptions import ErrorCode, InternalCompilerError, make_diagnostic
from ..logging import get_logger
from ..markup_analyser.classes import AnalyzedComponent
from ..parser.classes import CodeBlock, ComponentDecl, ImportSpecifier, PageMetadata
from ..scope_analyser.classes import ScopedDocument
from ..scope_analyser.policy import PAGE_FUNCTION_PLACEMENT
from .emitter import SourceWriter
from .lowering import CALLBACK, MarkupLowerer
from .routes import RouteMeta, build_route

logger = get_logger("codegen")

# Runtime names the user code may call directly.
USED_IN_SOURCE = {name: re.compile(rf"(?<![\w$.]){name}\s*[<(]") for name in ("ref", "watch")}


class GeneratedModule(BaseModel):
    code: str
    route: Optional[RouteMeta] = None
    diagnostics: List[Diagnostic] = []


def _specifier_text(specifier: ImportSpecifier) -> str:
    if specifier.imported == specifier.local:
        return specifier.local
    return f"{specifier.imported} as {specifier.local}"


class CodeGenerator:
    """
    Emits the compiled module for a scoped document:
    1. Runtime and user imports.
    2. The component scope, at module level (shared) or in the page function (page).
    3. Each component as a function returning `Component(...)`, with its UI
       scope and lowered markup inside the render callback.
    4. Passthrough module statements.
    """

    def __init__(self, scoped: ScopedDocument, analyzed: Dict[str, AnalyzedComponent], metadata: Optional[PageMetadata] = None):
        self.scoped = scoped
        self.analyzed = analyzed
        self.metadata = metadata or scoped.metadata
        self.in_page_function = scoped.component_scope_placement == PAGE_FUNCTION_PLACEMENT
        self.writer = SourceWriter()
        self.lowerer = MarkupLowerer(self.writer)
        self.emitted_sources: List[str] = []
        self.diagnostics: List[Diagnostic] = []

    def run(self) -> GeneratedModule:
        main = self.scoped.main_component

        if not self.in_page_function and self.scoped.component_scope_blocks:
            for block in self.scoped.component_scope_blocks:
                self._block(block, main.name, exportable=True)
            self.writer.blank()

        if self.in_page_function or main.is_default:
            header = "export default function"
        else:
            header = "export function" if main.is_exported else "function"
        component_scope = self.scoped.component_scope_blocks if self.in_page_function else []
        self._component(main, header, component_scope, self.scoped.ui_scope_blocks)

        for secondary in self.scoped.secondary_components:
            self.writer.blank()
            component = secondary.component
            self._component(component, "export function" if component.is_exported else "function", [], secondary.ui_scope_blocks)

        if self.scoped.module_statements:
            self.writer.blank()
            for block in self.scoped.module_statements:
                self.writer.source(block.source_text, block.span.s_col)

        header_writer = SourceWriter()
        for line in self._imports():
            header_writer.line(line)
        header_writer.blank()
        code = "\n".join(header_writer.lines + self.writer.lines).rstrip() + "\n"

        self.diagnostics.extend(self.lowerer.diagnostics)
        route = build_route(self.metadata, main.name, self.scoped.file_path)
        logger.debug("Generated %d line(s) for %s (route: %s)", code.count("\n"), self.scoped.file_path, route.path if route else None)
        return GeneratedModule(code=code, route=route, diagnostics=self.diagnostics)

    # --- Imports ---
    def _imports(self) -> List[str]:
        value_names: List[str] = ["Component"]
        type_names: List[str] = [BUILDER_TYPE]
        emitted = "\n".join(self.emitted_sources)
        for name in RUNTIME_VALUE_IMPORTS:
            if name in self.lowerer.runtime_names or (name in USED_IN_SOURCE and USED_IN_SOURCE[name].search(emitted)):
                value_names.append(name)
        if LINK_COMPONENT in self.lowerer.runtime_names:
            value_names.append(LINK_COMPONENT)
        for name in RUNTIME_TYPE_IMPORTS:
            if name in self.lowerer.runtime_names and name not in type_names:
                type_names.append(name)

        kept: List[str] = []
        for declaration in self.scoped.imports:
            if declaration.source == TEMPLATE_HELPER_MODULE:
                continue
            named = all(s.imported not in ("default", "*") for s in declaration.specifiers)
            if declaration.source != RUNTIME_MODULE or not named or not declaration.specifiers:
                kept.append(declaration.source_text)
                continue
            for specifier in declaration.specifiers:
                target = type_names if specifier.is_type else value_names
                text = _specifier_text(specifier)
                if text not in target:
                    target.append(text)

        lines = [
            f"import {{ {', '.join(value_names)} }} from '{RUNTIME_MODULE}'",
            f"import type {{ {', '.join(type_names)} }} from '{RUNTIME_MODULE}'",
        ]
        return lines + kept

    # --- Code ---
    def _block(self, block: CodeBlock, component_name: str, exportable: bool = False):
        if block.contains_markup:
            self.diagnostics.append(make_diagnostic(ErrorCode.CODEGEN_MARKUP_OUTSIDE_RETURN, span=block.span, component=component_name))
        text = block.source_text
        if exportable and block.is_exported:
            text = "export " + text
        self.emitted_sources.append(text)
        self.writer.source(text, block.span.s_col)

    def _component(self, component: ComponentDecl, header: str, component_scope: List[CodeBlock], ui_scope: List[CodeBlock]):
        analyzed = self.analyzed.get(component.name)
        if analyzed is None:
            raise InternalCompilerError(f"No analysed markup for component '{component.name}'.")

        parameters = ", ".join(p.source_text for p in component.parameters)
        self.writer.line(f"{header} {component.name}({parameters}) {{")
        with self.writer.indented():
            for block in component_scope:
                self._block(block, component.name)
            if component_scope:
                self.writer.blank()
            self.writer.line(f"return Component({CALLBACK} {{")
            with self.writer.indented():
                for block in ui_scope:
                    self._block(block, component.name)
                if ui_scope and analyzed.root:
                    self.writer.blank()
                self.lowerer.lower_all(analyzed.root)
            self.writer.line("})")
        self.writer.line("}")


def generate_module(scoped: ScopedDocument, analyzed_components, metadata: Optional[PageMetadata] = None) -> GeneratedModule:
    """
    Generates the module text. `analyzed_components` is a list of
    AnalyzedComponent or a mapping of component name to AnalyzedComponent.
    """
    if not isinstance(analyzed_components, dict):
        analyzed_components = {component.name: component for component in analyzed_components}
    return CodeGenerator(scoped, analyzed_components, metadata).run()
