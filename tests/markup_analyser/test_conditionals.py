import pytest
from textwrap import dedent

from auwlac.markup_analyser import AnalyzedElement, CodegenPlaceholder, ConditionalBlock, analyse_components
from auwlac.parser import parse_component_source

TEMPLATE = """
import {{ ref }} from 'auwla'

const show = ref(true)
const status = ref('idle')
const debug = false

export default function View() {{
  return (
    <div>
      {body}
    </div>
  )
}}
"""


def _analyse(body):
    document = parse_component_source(dedent(TEMPLATE).format(body=body), "View.tsx")
    return analyse_components(document)["View"]


def _root_children(body):
    component = _analyse(body)
    return component.root[0].children, component.diagnostics


def _without_spans(value):
    if isinstance(value, dict):
        return {k: _without_spans(v) for k, v in value.items() if k not in ("span", "idiom")}
    if isinstance(value, list):
        return [_without_spans(v) for v in value]
    return value


# --- 1. The three idioms normalize to the same block ---


@pytest.mark.parametrize(
    "body, idiom",
    [
        pytest.param("{show.value && <p>Shown</p>}", "logical-and", id="logical_and"),
        pytest.param("{show.value ? <p>Shown</p> : null}", "ternary", id="ternary"),
        pytest.param("{$if(show.value, <p>Shown</p>)}", "explicit-chain", id="explicit_chain"),
    ],
)
def test_conditional_idioms_share_one_shape(body, idiom):
    children, diagnostics = _root_children(body)
    assert diagnostics == []
    assert len(children) == 1

    block = children[0]
    assert isinstance(block, ConditionalBlock)
    assert block.idiom == idiom
    assert block.condition_expression.raw_expression == "show.value"
    assert block.condition_expression.dependency_symbols == ["show"]
    assert block.is_static is False
    assert block.else_if_chain == []
    assert block.else_branch is None
    assert block.then_branch[0].tag == "p"


def test_conditional_idioms_are_structurally_identical():
    shapes = []
    for body in ("{show.value && <p>Shown</p>}", "{show.value ? <p>Shown</p> : null}", "{$if(show.value, <p>Shown</p>)}"):
        children, _ = _root_children(body)
        shapes.append(_without_spans(children[0].model_dump()))
    assert shapes[0] == shapes[1] == shapes[2]


def test_non_reactive_condition_is_static():
    children, _ = _root_children("{debug && <p>Debug</p>}")
    assert children[0].is_static is True
    assert children[0].condition_expression.dependency_symbols == []


def test_chained_ternary_becomes_else_if_chain():
    children, _ = _root_children("{status.value === 'a' ? <A /> : status.value === 'b' ? <B /> : <C />}")
    block = children[0]
    assert block.condition_expression.raw_expression == "status.value === 'a'"
    assert [branch.condition.raw_expression for branch in block.else_if_chain] == ["status.value === 'b'"]
    assert block.else_if_chain[0].body[0].tag == "B"
    assert block.else_branch[0].tag == "C"
    assert block.else_branch[0].is_component


def test_branch_may_be_a_parameterless_arrow():
    children, _ = _root_children("{$if(show.value, () => <p>Lazy</p>, () => <p>Other</p>)}")
    block = children[0]
    assert block.then_branch[0].tag == "p"
    assert block.else_branch[0].children[0].value == "Other"


# --- 2. Explicit chain adjacency ---


def test_chain_ignores_whitespace_and_comment_slots():
    body = """{$if(status.value === 'loading', <p>Loading</p>)}
      {/* spinner above */}
      {$elseif(status.value === 'error', <p>Error</p>)}
      {$else(<p>Done</p>)}"""
    children, diagnostics = _root_children(body)

    assert diagnostics == []
    assert len(children) == 1
    block = children[0]
    assert block.idiom == "explicit-chain"
    assert len(block.else_if_chain) == 1
    assert block.else_branch[0].children[0].value == "Done"


def test_element_between_members_breaks_the_chain():
    body = """{$if(show.value, <p>A</p>)}
      <hr />
      {$else(<p>B</p>)}"""
    children, diagnostics = _root_children(body)

    assert [type(c) for c in children] == [ConditionalBlock, AnalyzedElement, CodegenPlaceholder]
    assert children[2].raw_expression == "$else(<p>B</p>)"
    assert [d.code for d in diagnostics] == ["MARKUP_ORPHAN_CONDITIONAL"]
    assert diagnostics[0].is_error


def test_elseif_after_else_is_orphaned():
    body = "{$if(show.value, <p>A</p>)}{$else(<p>B</p>)}{$elseif(debug, <p>C</p>)}"
    children, diagnostics = _root_children(body)
    assert [type(c) for c in children] == [ConditionalBlock, CodegenPlaceholder]
    assert [d.code for d in diagnostics] == ["MARKUP_ORPHAN_CONDITIONAL"]


def test_three_argument_if_closes_the_chain():
    children, diagnostics = _root_children("{$if(show.value, <p>A</p>, <p>B</p>)}{$else(<p>C</p>)}")
    assert children[0].else_branch[0].children[0].value == "B"
    assert isinstance(children[1], CodegenPlaceholder)
    assert [d.code for d in diagnostics] == ["MARKUP_ORPHAN_CONDITIONAL"]


def test_wrong_helper_arity_becomes_a_placeholder():
    children, diagnostics = _root_children("{$if(show.value)}")
    assert isinstance(children[0], CodegenPlaceholder)
    assert [d.code for d in diagnostics] == ["MARKUP_MALFORMED_HELPER"]
    assert "$if" in diagnostics[0].message


def test_inline_space_between_members_does_not_break_the_chain():
    children, diagnostics = _root_children("{$if(show.value, <p>A</p>)} {$else(<p>B</p>)}")
    assert diagnostics == []
    assert len(children) == 1
    assert children[0].else_branch[0].tag == "p"


def test_inline_space_after_a_chain_is_kept():
    children, diagnostics = _root_children("{$if(show.value, <p>A</p>)} <hr />")
    assert diagnostics == []
    assert [child.type for child in children] == ["conditional", "text", "element"]
    assert children[1].value == " "
