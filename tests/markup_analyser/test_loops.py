import pytest
from textwrap import dedent

from auwlac.markup_analyser import CodegenPlaceholder, LoopBlock, TextExpression, analyse_components
from auwlac.parser import parse_component_source

TEMPLATE = """
import {{ ref }} from 'auwla'

const todos = ref([])
const letters = ['a', 'b']

export default function Todos() {{
  return <ul>{body}</ul>
}}
"""


def _analyse(body):
    document = parse_component_source(dedent(TEMPLATE).format(body=body), "Todos.tsx")
    component = analyse_components(document)["Todos"]
    return component.root[0].children, component.diagnostics


def test_reactive_map_with_key():
    children, diagnostics = _analyse("{todos.value.map((todo) => <li key={todo.id}>{todo.title}</li>)}")
    assert diagnostics == []

    loop = children[0]
    assert isinstance(loop, LoopBlock)
    assert loop.idiom == "reactive-map"
    assert loop.iterable_expression == "todos.value"
    assert loop.is_reactive_source
    assert loop.dependency_symbols == ["todos"]
    assert loop.item_binding_name == "todo"
    assert loop.index_binding_name is None
    assert loop.key_expression == "todo.id"

    item = loop.body[0]
    assert item.tag == "li"
    # The loop variable is never a reactive dependency.
    text = item.children[0]
    assert isinstance(text, TextExpression)
    assert text.expression.dependency_symbols == []


def test_reactive_map_without_key_warns():
    children, diagnostics = _analyse("{todos.value.map((todo, i) => <li>{todo.title}</li>)}")
    loop = children[0]
    assert loop.key_expression is None
    assert loop.index_binding_name == "i"
    assert [d.code for d in diagnostics] == ["MARKUP_MISSING_KEY"]
    assert not diagnostics[0].is_error


@pytest.mark.parametrize(
    "body, iterable",
    [
        pytest.param("{['a', 'b'].map((letter) => <li>{letter}</li>)}", "['a', 'b']", id="array_literal"),
        pytest.param("{letters.map((letter) => <li>{letter}</li>)}", "letters", id="plain_constant"),
    ],
)
def test_static_map(body, iterable):
    children, diagnostics = _analyse(body)
    loop = children[0]
    assert loop.idiom == "static-map"
    assert loop.iterable_expression == iterable
    assert loop.is_reactive_source is False
    # Static loops are rendered once and need no key.
    assert diagnostics == []


def test_each_helper_with_key_callback():
    children, diagnostics = _analyse("{$each(todos, (todo, index) => <li>{index}: {todo.title}</li>, (todo) => todo.id)}")
    assert diagnostics == []

    loop = children[0]
    assert loop.idiom == "each-helper"
    assert loop.iterable_expression == "todos"
    assert loop.dependency_symbols == ["todos"]
    assert loop.item_binding_name == "todo"
    assert loop.index_binding_name == "index"
    assert loop.key_expression == "todo.id"
    assert loop.key_parameter == "todo"


def test_each_over_plain_value_falls_back_to_static_loop():
    children, diagnostics = _analyse("{$each(letters, (letter) => <li>{letter}</li>)}")
    loop = children[0]
    assert loop.is_reactive_source is False
    assert [d.code for d in diagnostics] == ["MARKUP_NON_REACTIVE_EACH"]


@pytest.mark.parametrize(
    "body",
    [
        pytest.param("{$each(todos)}", id="missing_render_callback"),
        pytest.param("{$each(todos, renderTodo)}", id="render_is_not_an_arrow"),
    ],
)
def test_malformed_each(body):
    children, diagnostics = _analyse(body)
    assert isinstance(children[0], CodegenPlaceholder)
    assert [d.code for d in diagnostics] == ["MARKUP_MALFORMED_HELPER"]


def test_block_bodied_callback_keeps_its_prelude():
    body = "{todos.value.map((todo) => { const label = todo.title.toUpperCase(); return <li key={todo.id}>{label}</li> })}"
    children, _ = _analyse(body)
    loop = children[0]
    assert loop.body_prelude == "const label = todo.title.toUpperCase();"
    assert loop.body[0].tag == "li"


def test_map_without_markup_is_a_text_expression():
    children, _ = _analyse("{letters.map((letter) => letter.toUpperCase()).join(', ')}")
    assert isinstance(children[0], TextExpression)
