import json
import os
from textwrap import dedent

import pytest

from auwlac.compiler import STAGES, compile_component

GREETER = dedent(
    """
    import { ref } from 'auwla'
    const count = ref(0)
    export default function Greeter() {
      return <p>{count.value}</p>
    }
    """
)


def test_parse_failure_is_reported_not_raised():
    result = compile_component("const x = 1\n", "Empty.tsx")
    assert result.code is None
    assert result.has_errors
    assert [d.code for d in result.diagnostics] == ["PARSE_NO_COMPONENT"]


def test_unexpected_failure_becomes_internal_error(monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("generator exploded")

    monkeypatch.setattr("auwlac.compiler.generate_module", boom)
    result = compile_component(GREETER, "Greeter.tsx")
    assert result.code is None
    assert [d.code for d in result.diagnostics] == ["INTERNAL_ERROR"]
    assert "RuntimeError: generator exploded" in result.diagnostics[0].message


@pytest.mark.parametrize("stage", ["document", "scopes", "markup"])
def test_stop_after_stage_saves_the_artifact(tmp_path, stage):
    file_path = str(tmp_path / "Greeter.tsx")
    result = compile_component(GREETER, file_path, stop_after_stage=stage)

    assert result.code is None
    assert list(result.artifacts) == list(STAGES[: STAGES.index(stage) + 1])
    expected_path = str(tmp_path / f"Greeter.{stage}.json")
    assert result.saved_artifacts == {stage: expected_path}
    with open(expected_path, "r", encoding="utf-8") as f:
        assert json.load(f)


def test_dump_stages_do_not_stop_the_pipeline(tmp_path):
    file_path = str(tmp_path / "Greeter.tsx")
    result = compile_component(GREETER, file_path, dump_stages=["scopes"])

    assert result.code is not None
    assert list(result.artifacts) == list(STAGES)
    assert os.path.exists(tmp_path / "Greeter.scopes.json")
    with open(tmp_path / "Greeter.scopes.json", "r", encoding="utf-8") as f:
        scoped = json.load(f)
    assert scoped["policy"] == "shared"
    assert [block["declared_symbols"] for block in scoped["component_scope_blocks"]] == [["count"]]


def test_scope_errors_do_not_block_code_generation():
    source = dedent(
        """
        const greeting = 'Hello ' + name
        export default function Greeter() {
          const name = 'Ada'
          return <p>{greeting}</p>
        }
        """
    )
    result = compile_component(source, "Greeter.tsx")
    assert [d.code for d in result.diagnostics] == ["SCOPE_UI_REFERENCE"]
    assert result.has_errors
    assert "export default function Greeter() {" in result.code


def test_stdin_artifacts_use_a_fixed_base_name(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = compile_component(GREETER, stop_after_stage="document")
    assert result.saved_artifacts == {"document": "stdin_output.document.json"}
    assert (tmp_path / "stdin_output.document.json").exists()


def test_page_state_used_by_a_helper_component_fails_compilation():
    source = dedent(
        """
        // @page /stats
        import { ref } from 'auwla'
        const count = ref(0)
        function Badge() {
          return <span>{count.value}</span>
        }
        export default function Stats() {
          return <div><Badge /></div>
        }
        """
    )
    result = compile_component(source, "Stats.tsx")
    assert [d.code for d in result.diagnostics] == ["SCOPE_UNREACHABLE_PAGE_SYMBOL"]
    assert result.has_errors
    # The module is still generated so the degraded output can be inspected.
    assert "export default function Stats() {" in result.code
