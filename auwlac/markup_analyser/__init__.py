from .analyser import MarkupAnalyser, analyse_components, analyse_markup, collect_reactive_symbols
from .classes import (
    AnalyzedComponent,
    AnalyzedElement,
    AnalyzedText,
    CodegenPlaceholder,
    ConditionalBlock,
    ConditionalBranch,
    Event,
    LoopBlock,
    Prop,
    ReactiveExpression,
    TextExpression,
)

__all__ = [
    "AnalyzedComponent",
    "AnalyzedElement",
    "AnalyzedText",
    "CodegenPlaceholder",
    "ConditionalBlock",
    "ConditionalBranch",
    "Event",
    "LoopBlock",
    "MarkupAnalyser",
    "Prop",
    "ReactiveExpression",
    "TextExpression",
    "analyse_components",
    "analyse_markup",
    "collect_reactive_symbols",
]
