from typing import List, Literal

from pydantic import BaseModel, ConfigDict

from ..data_structures import Diagnostic
from ..parser.classes import CodeBlock, ComponentDecl, ImportDeclaration, PageMetadata


class ComponentScope(BaseModel):
    """A component other than the main one, with its own ordered UI scope."""

    model_config = ConfigDict(frozen=True)

    component: ComponentDecl
    ui_scope_blocks: List[CodeBlock] = []


class ScopedDocument(BaseModel):
    """
    The document after scope partitioning. `component_scope_blocks` live at
    module level (shared policy) or inside the page function (page policy);
    `ui_scope_blocks` live inside the main component's render callback.
    """

    model_config = ConfigDict(frozen=True)

    file_path: str
    policy: Literal["shared", "page"]
    component_scope_placement: Literal["module", "page-function"]
    metadata: PageMetadata
    imports: List[ImportDeclaration] = []
    module_statements: List[CodeBlock] = []
    component_scope_blocks: List[CodeBlock] = []
    ui_scope_blocks: List[CodeBlock] = []
    main_component: ComponentDecl
    secondary_components: List[ComponentScope] = []
    diagnostics: List[Diagnostic] = []
