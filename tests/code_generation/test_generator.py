from textwrap import dedent

from auwlac.code_generation import generate_module
from auwlac.markup_analyser import analyse_components
from auwlac.parser import parse_component_source
from auwlac.scope_analyser import analyse_scopes


def _generate(source, file_path="View.tsx", **scoped_updates):
    document = parse_component_source(dedent(source), file_path)
    scoped = analyse_scopes(document)
    if scoped_updates:
        scoped = scoped.model_copy(update=scoped_updates)
    return generate_module(scoped, analyse_components(document))


PAGE = """
// @page /about
import { ref } from 'auwla'
const count = ref(0)
export default function About() {
  return <p>{count.value}</p>
}
"""


def test_page_function_placement_nests_the_component_scope():
    lines = _generate(PAGE).code.splitlines()
    header = lines.index("export default function About() {")
    assert lines[header + 1] == "  const count = ref(0)"
    assert "const count = ref(0)" not in lines


def test_module_placement_keeps_the_component_scope_at_top_level():
    lines = _generate(PAGE, component_scope_placement="module").code.splitlines()
    assert "const count = ref(0)" in lines
    assert lines.index("const count = ref(0)") < lines.index("export default function About() {")


def test_inline_space_between_text_slots_is_rendered():
    module = _generate(
        """
        import { ref } from 'auwla'
        const first = ref('a')
        const last = ref('b')
        export default function Name() {
          return <p>{first.value} {last.value}</p>
        }
        """
    )
    assert "ui.P({ text: watch([first, last], () => `${first.value} ${last.value}`) as Ref<string> })" in module.code


def test_dropped_component_children_surface_as_a_diagnostic():
    module = _generate(
        """
        function Card() { return <div /> }
        export default function Deck() {
          return <Card><p>child</p></Card>
        }
        """
    )
    assert "ui.append(Card({}))" in module.code
    assert [d.code for d in module.diagnostics] == ["CODEGEN_COMPONENT_CHILDREN"]
