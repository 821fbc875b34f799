import pytest
from textwrap import dedent

from auwlac.parser.directives import parse_directives
from auwlac.parser.symbols import free_identifiers


# --- Directives ---


def test_page_directive_with_route_and_fields():
    source = dedent(
        """
        // @page /users/profile
        // @title User profile
        // @description Shows one user
        // @guard requireAuth
        import { ref } from 'auwla'

        export default function Profile() {
          return <div />
        }
        """
    )
    metadata = parse_directives(source)
    assert metadata.is_page
    assert metadata.route_path == "/users/profile"
    assert metadata.title == "User profile"
    assert metadata.description == "Shows one user"
    assert metadata.guard == "requireAuth"


@pytest.mark.parametrize(
    "source, is_page, route_path",
    [
        pytest.param("// @page\nexport default function A() {}", True, None, id="bare_page"),
        pytest.param("// @page about\nexport default function A() {}", True, "/about", id="route_without_slash"),
        pytest.param("import { ref } from 'auwla'\n// @page /late\n", True, "/late", id="after_imports"),
        pytest.param("const x = 1\n// @page /ignored\n", False, None, id="after_code"),
        pytest.param("/* @page /ignored */\nconst x = 1\n", False, None, id="inside_block_comment"),
        pytest.param("export default function A() {}\n", False, None, id="no_directive"),
    ],
)
def test_page_directive_placement(source, is_page, route_path):
    metadata = parse_directives(source)
    assert metadata.is_page == is_page
    assert metadata.route_path == route_path


# --- Free identifiers ---


@pytest.mark.parametrize(
    "code, expected",
    [
        pytest.param("const total = items.value.reduce((sum, item) => sum + item.price, 0) + offset", ["items", "offset"], id="arrow_parameters_are_bound"),
        pytest.param("f({ a: b, c })", ["f", "b", "c"], id="object_keys_skipped"),
        pytest.param("new Date(x)", ["x"], id="capitalized_names_skipped"),
        pytest.param("console.log(message)", ["message"], id="globals_skipped"),
        pytest.param("function go(path) { router.push(path) }", ["router"], id="function_parameters_are_bound"),
        pytest.param("const { a, b: renamed } = source", ["source"], id="destructuring_binds_names"),
        pytest.param("show.value && <p>{label}</p>", ["show", "label"], id="markup_containers_are_read"),
    ],
)
def test_free_identifiers(code, expected):
    assert free_identifiers(code) == expected


def test_free_identifiers_honours_exclusions():
    assert free_identifiers("todo.title + suffix", exclude=["todo"]) == ["suffix"]
