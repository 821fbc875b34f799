"""
Defines the formal data structures (contracts) for the document produced by
the parser stage.

Each node is a pydantic model and carries a `Span` so later stages can
report problems at the right place in the component file. Nodes are frozen:
downstream stages build new structures instead of editing these.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..data_structures import Span

# --- Core Data Structures ---


class ASTNode(BaseModel):
    """A base class for all parsed nodes, ensuring they have a span."""

    model_config = ConfigDict(frozen=True)

    span: Span


# --- Markup ---
# The markup tree is kept structural only: attribute values and expression
# slots hold their raw source text and are interpreted by the markup analyser.


class MarkupAttribute(ASTNode):
    name: Optional[str] = None
    kind: Literal["string", "expression", "boolean", "spread"]
    value: Optional[str] = None


class MarkupElement(ASTNode):
    type: Literal["element"] = "element"
    tag: str
    attributes: List[MarkupAttribute] = []
    children: List["MarkupNode"] = []


class MarkupFragment(ASTNode):
    type: Literal["fragment"] = "fragment"
    children: List["MarkupNode"] = []


class MarkupText(ASTNode):
    type: Literal["text"] = "text"
    value: str


class MarkupExpression(ASTNode):
    """A `{...}` child slot; `span` covers the expression inside the braces."""

    type: Literal["expression"] = "expression"
    expression: str


MarkupNode = Annotated[Union[MarkupElement, MarkupFragment, MarkupText, MarkupExpression], Field(discriminator="type")]


# --- Code ---


class CodeBlock(ASTNode):
    """
    One top-level or component-body statement, kept as source text together
    with the names it declares and the free names it references.
    """

    kind: Literal["variable", "function", "expression"]
    source_text: str
    declared_symbol: Optional[str] = None
    declared_symbols: List[str] = []
    referenced_symbols: List[str] = []
    origin: Literal["top-level", "component-body"]
    is_exported: bool = False
    is_reactive_container: bool = False
    contains_markup: bool = False


class Parameter(ASTNode):
    source_text: str
    names: List[str]


class ImportSpecifier(BaseModel):
    model_config = ConfigDict(frozen=True)

    imported: str
    local: str
    is_type: bool = False


class ImportDeclaration(ASTNode):
    source: str
    specifiers: List[ImportSpecifier] = []
    type_only: bool = False
    source_text: str


class ComponentDecl(ASTNode):
    name: str
    is_default: bool = False
    is_exported: bool = False
    parameters: List[Parameter] = []
    body_blocks: List[CodeBlock] = []
    returned_markup: Optional[MarkupNode] = None


# --- Top-level Structures ---


class PageMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_page: bool = False
    route_path: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    guard: Optional[str] = None


class SourceDocument(BaseModel):
    """The root of the parse, representing a single component file."""

    model_config = ConfigDict(frozen=True)

    file_path: str
    metadata: PageMetadata
    imports: List[ImportDeclaration] = []
    top_level_blocks: List[CodeBlock] = []
    components: List[ComponentDecl] = []
    module_statements: List[CodeBlock] = []

    @property
    def default_component(self) -> Optional[ComponentDecl]:
        return next((c for c in self.components if c.is_default), None)


MarkupElement.model_rebuild()
MarkupFragment.model_rebuild()
ComponentDecl.model_rebuild()
