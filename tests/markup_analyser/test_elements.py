from textwrap import dedent

from auwlac.markup_analyser import AnalyzedText, CodegenPlaceholder, TextExpression, analyse_components, analyse_markup, collect_reactive_symbols
from auwlac.parser import parse_component_source


def _component(source, name):
    document = parse_component_source(dedent(source), f"{name}.tsx")
    return analyse_components(document)[name]


def test_props_events_and_renames():
    component = _component(
        """
        import { ref } from 'auwla'
        const active = ref(false)
        function save() {}

        export default function Form() {
          return <button class="btn" for="x" onClick={save} disabled {...extra}>Save</button>
        }
        """,
        "Form",
    )
    button = component.root[0]
    assert [(p.name, p.kind, p.value) for p in button.props] == [
        ("className", "string", '"btn"'),
        ("htmlFor", "string", '"x"'),
        ("disabled", "boolean", "true"),
        (None, "spread", "extra"),
    ]
    assert [(e.event_name, e.handler_expression) for e in button.events] == [("click", "save")]
    assert button.children == [AnalyzedText(value="Save", span=button.children[0].span)]


def test_reactive_attribute_records_dependencies():
    component = _component(
        """
        import { ref } from 'auwla'
        const active = ref(false)
        export default function Tab() {
          return <div class={active.value ? 'on' : 'off'} />
        }
        """,
        "Tab",
    )
    prop = component.root[0].props[0]
    assert prop.name == "className"
    assert prop.is_reactive
    assert prop.dependencies == ["active"]


def test_component_tags_keep_prop_names_and_handlers():
    component = _component(
        """
        function Card() { return <div /> }
        export default function Page() {
          return <Card class="wide" onSelect={pick} />
        }
        """,
        "Page",
    )
    card = component.root[0]
    assert card.is_component
    assert [p.name for p in card.props] == ["class", "onSelect"]
    assert card.events == []


def test_text_expression_dependencies():
    component = _component(
        """
        import { ref } from 'auwla'
        const count = ref(0)
        export default function Total() {
          const unit = 'items'
          return <p>Total: {count.value} {unit}</p>
        }
        """,
        "Total",
    )
    total, count, space, unit = component.root[0].children
    assert total.value == "Total: "
    assert isinstance(count, TextExpression) and count.expression.dependency_symbols == ["count"]
    assert space.value == " "
    assert unit.expression.dependency_symbols == []
    assert component.reactive_symbols == ["count"]


def test_value_read_counts_as_a_dependency_without_declaration():
    component = _component(
        """
        import { store } from './store'
        export default function Name() {
          return <p>{store.value.name}</p>
        }
        """,
        "Name",
    )
    assert component.root[0].children[0].expression.dependency_symbols == ["store"]


def test_fragment_children_are_flattened():
    component = _component("export default function F() { return <><h1>A</h1><p>B</p></> }\n", "F")
    assert [node.tag for node in component.root] == ["h1", "p"]


def test_unsupported_markup_expression_becomes_a_placeholder():
    component = _component("export default function U() { return <div>{(() => <p />)()}</div> }\n", "U")
    placeholder = component.root[0].children[0]
    assert isinstance(placeholder, CodegenPlaceholder)
    assert placeholder.raw_expression == "(() => <p />)()"
    assert [d.code for d in component.diagnostics] == ["CODEGEN_UNSUPPORTED_EXPRESSION"]


def test_collect_reactive_symbols_and_explicit_symbols():
    document = parse_component_source(
        dedent(
            """
            import { ref, computed } from 'auwla'
            const a = ref(1)
            const b = computed(() => a.value + 1)
            const c = 3
            export default function S() { return <p>{c}</p> }
            """
        )
    )
    assert collect_reactive_symbols(document.top_level_blocks) == ["a", "b"]

    analysed = analyse_markup(document.components[0], ["c"])
    assert analysed.root[0].children[0].expression.dependency_symbols == ["c"]
