import pytest
from textwrap import dedent

from auwlac.exceptions import AuwlaCompilerError, ErrorCode
from auwlac.parser import parse_component_source
from auwlac.parser.classes import MarkupElement, MarkupExpression, MarkupText
from auwlac.parser.parser import parse_statements

# --- 1. Statement Splitting ---


def test_statements_follow_line_breaks_and_semicolons():
    source = "const a = 1\nconst b = a\n  + 2\nfoo(); const c = 3\n"
    statements = parse_statements(source, "<stdin>")
    assert [s.kind for s in statements] == ["variable", "variable", "expression", "variable"]
    # The continuation line belongs to the second declaration.
    assert source[statements[1].start : statements[1].end] == "const b = a\n  + 2"


def test_function_declaration_ends_with_its_body():
    statements = parse_statements("function f() { return 1 } f()", "<stdin>")
    assert [s.kind for s in statements] == ["function", "expression"]


def test_dynamic_import_is_an_expression():
    statements = parse_statements("import('./lazy')\nimport { a } from './a'\n", "<stdin>")
    assert [s.kind for s in statements] == ["expression", "import"]


# --- 2. Document Structure ---


def test_parses_counter_component():
    source = dedent(
        """
        import { ref } from 'auwla'
        import { $if } from 'auwla/template'

        const count = ref(0)
        function increment() { count.value++ }

        export default function Counter() {
          const label = 'Count'
          return <button onClick={increment}>{label}: {count.value}</button>
        }
        """
    )
    document = parse_component_source(source, "Counter.tsx")

    assert [i.source for i in document.imports] == ["auwla", "auwla/template"]
    assert document.imports[0].specifiers[0].imported == "ref"

    count, increment = document.top_level_blocks
    assert count.declared_symbol == "count"
    assert count.is_reactive_container
    assert count.origin == "top-level"
    assert increment.kind == "function"
    assert increment.referenced_symbols == ["count"]

    assert len(document.components) == 1
    component = document.components[0]
    assert component.name == "Counter"
    assert component.is_default and component.is_exported
    assert [b.declared_symbol for b in component.body_blocks] == ["label"]
    assert component.body_blocks[0].origin == "component-body"

    markup = component.returned_markup
    assert isinstance(markup, MarkupElement)
    assert markup.tag == "button"
    assert markup.attributes[0].name == "onClick"
    assert markup.attributes[0].kind == "expression"
    assert markup.attributes[0].value == "increment"
    assert [type(c) for c in markup.children] == [MarkupExpression, MarkupText, MarkupExpression]


def test_arrow_component_promoted_by_default_reference():
    source = dedent(
        """
        const Card = ({ title }) => (
          <section>{title}</section>
        )
        export default Card
        """
    )
    document = parse_component_source(source)

    assert document.top_level_blocks == []
    assert document.module_statements == []
    card = document.components[0]
    assert card.name == "Card"
    assert card.is_default and card.is_exported
    assert card.parameters[0].source_text == "{ title }"
    assert card.parameters[0].names == ["title"]
    assert card.returned_markup.tag == "section"


def test_anonymous_default_component_is_named_after_the_file():
    document = parse_component_source("export default () => <div />\n", "pages/user-settings.tsx")
    assert document.components[0].name == "UserSettings"


def test_function_without_markup_is_a_code_block():
    source = dedent(
        """
        function Format(value) { return String(value) }
        export default function Shown() { return <p>{Format(1)}</p> }
        """
    )
    document = parse_component_source(source)
    assert [c.name for c in document.components] == ["Shown"]
    assert document.top_level_blocks[0].declared_symbol == "Format"


def test_reexports_pass_through_as_module_statements():
    source = dedent(
        """
        function helper() {}
        export { helper }
        export default function Page() { return <div /> }
        """
    )
    document = parse_component_source(source)
    assert [b.source_text for b in document.module_statements] == ["export { helper }"]


def test_import_specifier_forms():
    source = dedent(
        """
        import Default, { a as b, type T } from './mod'
        import * as all from './all'
        import type { Ref } from 'auwla'
        export default function X() { return <div /> }
        """
    )
    document = parse_component_source(source)
    first, second, third = document.imports

    assert [(s.imported, s.local, s.is_type) for s in first.specifiers] == [("default", "Default", False), ("a", "b", False), ("T", "T", True)]
    assert [(s.imported, s.local) for s in second.specifiers] == [("*", "all")]
    assert third.type_only
    assert third.specifiers[0].is_type


# --- 3. Errors ---


@pytest.mark.parametrize(
    "source, expected_code",
    [
        pytest.param(
            "export default function A() { return <div /> }\nexport default function B() { return <p /> }\n",
            ErrorCode.PARSE_MULTIPLE_DEFAULT_EXPORTS,
            id="multiple_default_exports",
        ),
        pytest.param("const x = 1\n", ErrorCode.PARSE_NO_COMPONENT, id="no_component"),
        pytest.param("// @page\nexport function About() { return <div /> }\n", ErrorCode.PARSE_PAGE_NOT_DEFAULT, id="page_without_default"),
        pytest.param("return 1\nexport default function A() { return <div /> }\n", ErrorCode.PARSE_RETURN_OUTSIDE_FUNCTION, id="top_level_return"),
        pytest.param("const s = 'abc\nexport default function A() { return <div /> }\n", ErrorCode.PARSE_UNCLOSED_STRING, id="unclosed_string"),
        pytest.param("const x = (1 + 2\nexport default function A() { return <div /> }\n", ErrorCode.PARSE_UNCLOSED_BRACKET, id="unclosed_bracket"),
        pytest.param("export default function A() { return <div></span> }\n", ErrorCode.PARSE_MISMATCHED_TAG, id="mismatched_tag"),
        pytest.param("export default function A() { return `open }\n", ErrorCode.PARSE_UNCLOSED_TEMPLATE, id="unclosed_template"),
    ],
)
def test_structural_and_syntax_errors(source, expected_code):
    with pytest.raises(AuwlaCompilerError) as e:
        parse_component_source(source, "broken.tsx")
    assert e.value.code == expected_code


def test_error_location_points_at_the_problem():
    source = "export default function A() { return <div /> }\nconst s = 'abc\n"
    with pytest.raises(AuwlaCompilerError) as e:
        parse_component_source(source, "broken.tsx")
    assert e.value.span.s_line == 2
    assert e.value.span.s_col == 11
    assert "broken.tsx" in str(e.value)
