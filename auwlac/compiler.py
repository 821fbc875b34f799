import os
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from .code_generation import RouteMeta, generate_module
from .data_structures import Diagnostic
from .exceptions import AuwlaCompilerError, ErrorCode, make_diagnostic
from .logging import get_logger, log_diagnostic
from .markup_analyser import analyse_components
from .parser import parse_component_source
from .scope_analyser import analyse_scopes
from .utils import dump_artifact

logger = get_logger("compiler")

# Stage names in execution order; each can be dumped or used as a stop point.
STAGES = ("document", "scopes", "markup", "module")


class CompileResult(BaseModel):
    """The outcome of compiling one file. `code` is None when a stage aborted."""

    code: Optional[str] = None
    diagnostics: List[Diagnostic] = []
    route: Optional[RouteMeta] = None
    artifacts: Dict[str, Any] = {}
    saved_artifacts: Dict[str, str] = {}

    @property
    def has_errors(self) -> bool:
        return any(d.is_error for d in self.diagnostics)


class CompilationPipeline:
    """
    Orchestrates the compilation of one component file.
    The artifact of each stage is passed as input to the next; the scope and
    markup stages both read the parsed document and do not depend on each other.
    """

    def __init__(
        self,
        source_content: str,
        file_path: Optional[str],
        dump_stages: List[str] = [],
        stop_after_stage: Optional[str] = None,
    ):
        self.source_content = source_content
        self.file_path = file_path or "<stdin>"
        self.dump_stages = dump_stages
        self.stop_after_stage = stop_after_stage
        self.artifacts: Dict[str, Any] = {}
        self.saved_artifacts: Dict[str, str] = {}
        self.diagnostics: List[Diagnostic] = []
        self.code: Optional[str] = None
        self.route: Optional[RouteMeta] = None

    def run(self) -> CompileResult:
        try:
            # --- Stage 1: Parsing ---
            document = self._run_simple_stage("document", parse_component_source, self.source_content, self.file_path)
            if self.stop_after_stage == "document":
                return self._result()

            # --- Stage 2: Scope Analysis ---
            scoped = self._run_simple_stage("scopes", analyse_scopes, document)
            self.diagnostics.extend(scoped.diagnostics)
            if self.stop_after_stage == "scopes":
                return self._result()

            # --- Stage 3: Markup Analysis ---
            analyzed = self._run_simple_stage("markup", analyse_components, document)
            for component in analyzed.values():
                self.diagnostics.extend(component.diagnostics)
            if self.stop_after_stage == "markup":
                return self._result()

            # --- Stage 4: Code Generation ---
            module = self._run_simple_stage("module", generate_module, scoped, analyzed)
            self.diagnostics.extend(module.diagnostics)
            self.code = module.code
            self.route = module.route

        except AuwlaCompilerError as e:
            logger.debug("Compilation of %s stopped: %s", self.file_path, e.core_message)
            self.diagnostics.append(e.to_diagnostic())
        except Exception as e:
            logger.exception("Unexpected error while compiling %s", self.file_path)
            self.diagnostics.append(make_diagnostic(ErrorCode.INTERNAL_ERROR, file_path=self.file_path, details=f"{type(e).__name__}: {e}"))

        return self._result()

    def _result(self) -> CompileResult:
        for diagnostic in self.diagnostics:
            log_diagnostic(logger, diagnostic)
        return CompileResult(
            code=self.code,
            diagnostics=self.diagnostics,
            route=self.route,
            artifacts=self.artifacts,
            saved_artifacts=self.saved_artifacts,
        )

    def _run_simple_stage(self, name: str, func, *args, **kwargs) -> Any:
        """Runs a single function as a stage, storing and returning its result."""
        result = func(*args, **kwargs)
        self.artifacts[name] = result
        logger.debug("Stage '%s' finished for %s", name, self.file_path)
        if name in self.dump_stages or self.stop_after_stage == name:
            self.save_artifact(name, result)
        return result

    def save_artifact(self, name: str, data: Any):
        """Saves an intermediate artifact next to the source as `<base>.<stage>.json`."""
        if self.file_path == "<stdin>":
            base_name = "stdin_output"
        else:
            base_name = os.path.splitext(self.file_path)[0]

        output_path = f"{base_name}.{name}.json"
        try:
            dump_artifact(data, output_path)
        except OSError as e:
            logger.error("Could not save artifact '%s': %s", name, e)
            return
        self.saved_artifacts[name] = output_path
        logger.info("Saved artifact '%s' to %s", name, output_path)


def compile_component(
    source_text: str,
    file_path: Optional[str] = None,
    dump_stages: List[str] = [],
    stop_after_stage: Optional[str] = None,
) -> CompileResult:
    """
    High-level entry point. Never raises: every problem, including internal
    failures, is reported as a diagnostic on the result.
    """
    pipeline = CompilationPipeline(source_text, file_path, list(dump_stages), stop_after_stage)
    return pipeline.run()
