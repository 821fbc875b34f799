import json
import logging

import pytest

from auwlac.cli import main


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger("auwlac")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def test_compiles_page_and_writes_route(create_files, load_fixture, capsys):
    root = create_files({"pages/about_page.tsx": load_fixture("about_page.tsx")})
    main([str(root / "pages" / "about_page.tsx")])

    compiled = root / "pages" / "about_page.compiled.ts"
    assert compiled.read_text(encoding="utf-8").startswith("import { Component, ref, watch } from 'auwla'")
    route = json.loads((root / "pages" / "about_page.route.json").read_text(encoding="utf-8"))
    assert route["path"] == "/about"
    assert route["component"] == "About"
    assert "Compilation Successful" in capsys.readouterr().out


def test_shared_component_has_no_route_file(create_files, load_fixture):
    root = create_files({"counter.tsx": load_fixture("counter.tsx")})
    main([str(root / "counter.tsx")])
    assert (root / "counter.compiled.ts").read_text(encoding="utf-8") == load_fixture("counter.expected.ts")
    assert not (root / "counter.route.json").exists()


def test_explicit_output_path(create_files, load_fixture):
    root = create_files({"counter.tsx": load_fixture("counter.tsx")})
    main([str(root / "counter.tsx"), "-o", str(root / "dist" / "Counter.ts")])
    assert (root / "dist" / "Counter.ts").exists()


def test_errors_exit_with_status_one(create_files, load_fixture, capsys):
    root = create_files({"broken_chain.tsx": load_fixture("broken_chain.tsx"), "counter.tsx": load_fixture("counter.tsx")})
    with pytest.raises(SystemExit) as excinfo:
        main([str(root / "broken_chain.tsx"), str(root / "counter.tsx")])
    assert excinfo.value.code == 1

    err = capsys.readouterr().err
    assert "broken_chain.tsx:10:" in err
    assert "COMPILED WITH ERRORS" in err
    # Markup errors still leave a module behind, so it is written.
    assert "$else(<p>Waiting</p>)" in (root / "broken_chain.compiled.ts").read_text(encoding="utf-8")
    # The remaining inputs are still compiled.
    assert (root / "counter.compiled.ts").exists()


def test_parse_error_writes_nothing(create_files, capsys):
    root = create_files({"Broken.tsx": "export default function Broken() {\n  return <div></span>\n}\n"})
    with pytest.raises(SystemExit) as excinfo:
        main([str(root / "Broken.tsx")])
    assert excinfo.value.code == 1
    assert "COMPILATION FAILED" in capsys.readouterr().err
    assert not (root / "Broken.compiled.ts").exists()


def test_missing_input_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([str(tmp_path / "Missing.tsx")])
    assert excinfo.value.code == 1
    assert "not found" in capsys.readouterr().err


def test_output_with_several_inputs_is_rejected(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main([str(tmp_path / "a.tsx"), str(tmp_path / "b.tsx"), "-o", str(tmp_path / "out.ts")])
    assert excinfo.value.code == 2


def test_compile_flag_stops_and_saves_stage(create_files, load_fixture, capsys):
    root = create_files({"counter.tsx": load_fixture("counter.tsx")})
    main([str(root / "counter.tsx"), "-c", "1"])

    document = json.loads((root / "counter.document.json").read_text(encoding="utf-8"))
    assert [c["name"] for c in document["components"]] == ["Counter"]
    assert not (root / "counter.compiled.ts").exists()
    assert "Parsed Source Document" in capsys.readouterr().out


def test_log_file_receives_debug_output(create_files, load_fixture):
    root = create_files({"counter.tsx": load_fixture("counter.tsx")})
    log_file = root / "auwlac.log"
    main([str(root / "counter.tsx"), "-v", "--log-file", str(log_file)])
    assert "Stage 'module' finished" in log_file.read_text(encoding="utf-8")


def test_log_lines_about_diagnostics_carry_their_location(create_files, load_fixture, capsys):
    root = create_files({"broken_chain.tsx": load_fixture("broken_chain.tsx")})
    log_file = root / "auwlac.log"
    with pytest.raises(SystemExit):
        main([str(root / "broken_chain.tsx"), "--log-file", str(log_file)])

    lines = [line for line in log_file.read_text(encoding="utf-8").splitlines() if "MARKUP_ORPHAN_CONDITIONAL" in line]
    assert len(lines) == 1
    assert "auwlac.compiler: " in lines[0]
    assert "broken_chain.tsx:10:" in lines[0]
    assert "error MarkupError [MARKUP_ORPHAN_CONDITIONAL]" in lines[0]
    # Debug records stay out of the console unless --verbose is given.
    assert "MARKUP_ORPHAN_CONDITIONAL" not in capsys.readouterr().err
