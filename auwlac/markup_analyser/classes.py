"""
The normalized markup model produced by the markup analyser.

Whatever idiom the author used, a conditional ends up as a
`ConditionalBlock` and a loop as a `LoopBlock`. Fragments are flattened
into their parent's children. Constructs that cannot be lowered become
`CodegenPlaceholder` nodes so the generator can still emit a module.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..data_structures import Diagnostic, Span


class AnalyzedNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    span: Optional[Span] = None


class ReactiveExpression(BaseModel):
    model_config = ConfigDict(frozen=True)

    raw_expression: str
    dependency_symbols: List[str] = []
    role: Literal["text", "attribute", "condition"]

    @property
    def is_reactive(self) -> bool:
        return bool(self.dependency_symbols)


class Prop(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    kind: Literal["string", "expression", "boolean", "spread"]
    value: str
    is_reactive: bool = False
    dependencies: List[str] = []


class Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_name: str
    handler_expression: str


class AnalyzedText(AnalyzedNode):
    type: Literal["text"] = "text"
    value: str


class TextExpression(AnalyzedNode):
    type: Literal["text_expression"] = "text_expression"
    expression: ReactiveExpression


class AnalyzedElement(AnalyzedNode):
    type: Literal["element"] = "element"
    tag: str
    props: List[Prop] = []
    events: List[Event] = []
    children: List["AnalyzedChild"] = []
    key: Optional[str] = None
    is_component: bool = False


class ConditionalBranch(BaseModel):
    model_config = ConfigDict(frozen=True)

    condition: ReactiveExpression
    body: List["AnalyzedChild"] = []


class ConditionalBlock(AnalyzedNode):
    type: Literal["conditional"] = "conditional"
    idiom: Literal["logical-and", "ternary", "explicit-chain"]
    condition_expression: ReactiveExpression
    is_static: bool
    then_branch: List["AnalyzedChild"] = []
    else_if_chain: List[ConditionalBranch] = []
    else_branch: Optional[List["AnalyzedChild"]] = None


class LoopBlock(AnalyzedNode):
    type: Literal["loop"] = "loop"
    idiom: Literal["reactive-map", "static-map", "each-helper"]
    iterable_expression: str
    is_reactive_source: bool
    dependency_symbols: List[str] = []
    item_binding_name: str
    index_binding_name: Optional[str] = None
    key_expression: Optional[str] = None
    key_parameter: Optional[str] = None
    body_prelude: Optional[str] = None
    body: List["AnalyzedChild"] = []


class CodegenPlaceholder(AnalyzedNode):
    type: Literal["placeholder"] = "placeholder"
    raw_expression: str
    reason: str


AnalyzedChild = Annotated[
    Union[AnalyzedText, TextExpression, AnalyzedElement, ConditionalBlock, LoopBlock, CodegenPlaceholder],
    Field(discriminator="type"),
]


class AnalyzedComponent(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    root: List[AnalyzedChild] = []
    reactive_symbols: List[str] = []
    diagnostics: List[Diagnostic] = []


AnalyzedElement.model_rebuild()
ConditionalBranch.model_rebuild()
ConditionalBlock.model_rebuild()
LoopBlock.model_rebuild()
