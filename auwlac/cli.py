import argparse
import os
import sys
import time
from pathlib import Path

from .compiler import compile_component
from .logging import configure_logging
from .utils import TerminalColors, dump_artifact

# Single source of truth for stage names and their order.
STAGE_MAP = {
    "1": ("document", "Parsed Source Document"),
    "2": ("scopes", "Scoped Document"),
    "3": ("markup", "Analysed Markup"),
}


def _print_diagnostics(diagnostics):
    for diagnostic in diagnostics:
        color = TerminalColors.RED if diagnostic.is_error else TerminalColors.YELLOW
        print(f"{color}{diagnostic.format()}{TerminalColors.RESET}", file=sys.stderr)


def _output_path(input_file, output_file) -> str:
    if output_file:
        return output_file
    if input_file:
        return os.path.splitext(input_file)[0] + ".compiled.ts"
    return "stdin.compiled.ts"


def _compile_one(input_file, args, stop_after_stage) -> bool:
    """Compiles one input and writes its outputs. Returns False when an error was reported."""
    display_name = input_file or "stdin"
    print(f"--- Compiling {display_name} ---")

    if input_file:
        with open(input_file, "r", encoding="utf-8") as f:
            source = f.read()
    else:
        source = sys.stdin.read()

    dump_stages = [stop_after_stage] if stop_after_stage else []
    result = compile_component(source, file_path=input_file, dump_stages=dump_stages, stop_after_stage=stop_after_stage)
    _print_diagnostics(result.diagnostics)

    for name, path in result.saved_artifacts.items():
        print(f"--- Saved artifact '{name}' to {path} ---")

    if stop_after_stage:
        if result.has_errors:
            print(f"{TerminalColors.RED}--- COMPILATION FAILED: {display_name} ---{TerminalColors.RESET}", file=sys.stderr)
            return False
        print(f"{TerminalColors.GREEN}--- Compilation to stage '{args.compile} ({STAGE_MAP[args.compile][1]})' successful ---{TerminalColors.RESET}")
        return True

    # A parse error aborts the file; later-stage errors still leave a module behind.
    if result.code is None:
        print(f"{TerminalColors.RED}--- COMPILATION FAILED: {display_name} ---{TerminalColors.RESET}", file=sys.stderr)
        return False

    output_path = os.path.abspath(_output_path(input_file, args.output_file))
    os.makedirs(os.path.dirname(output_path), exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(result.code)
    if result.has_errors:
        print(f"{TerminalColors.RED}--- COMPILED WITH ERRORS: {display_name} ---{TerminalColors.RESET}", file=sys.stderr)
    else:
        print(f"{TerminalColors.GREEN}--- Compilation Successful ---{TerminalColors.RESET}")
    print(f"Module written to {output_path}")

    if result.route is not None:
        route_path = output_path[: -len(".compiled.ts")] if output_path.endswith(".compiled.ts") else os.path.splitext(output_path)[0]
        route_path += ".route.json"
        dump_artifact(result.route, route_path)
        print(f"Route '{result.route.path}' written to {route_path}")
    return not result.has_errors


def main(argv=None):
    start_time = time.perf_counter()

    # Dynamically generate help text for the --compile argument
    stage_help_text = "Stop after a specific stage and save its artifact as JSON. "
    for key, (name, desc) in STAGE_MAP.items():
        stage_help_text += f"'{key}' for {desc}. "
    stage_help_text += "Omitting this flag runs the full pipeline and writes the compiled module."

    parser = argparse.ArgumentParser(prog="auwlac", description="Compile auwla component files (.tsx) into builder-API modules.")
    parser.add_argument("input_files", nargs="*", help="The component files to compile. Omit to read from stdin.")
    parser.add_argument("-o", "--output", dest="output_file", help="The output path. Only valid with a single input.")
    parser.add_argument("-c", "--compile", type=str, choices=STAGE_MAP.keys(), help=stage_help_text)
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write the log to this file.")

    args = parser.parse_args(argv)

    # --- Input Validation ---
    if not args.input_files and sys.stdin.isatty():
        parser.error("input_files are required when not reading from a pipe.")
    if args.output_file and len(args.input_files) > 1:
        parser.error("-o/--output can only be used with a single input file.")

    configure_logging(verbose=args.verbose, log_file=args.log_file)
    stop_after_stage = STAGE_MAP[args.compile][0] if args.compile else None

    succeeded = True
    try:
        for input_file in args.input_files or [None]:
            try:
                succeeded = _compile_one(input_file, args, stop_after_stage) and succeeded
            except FileNotFoundError:
                print(f"{TerminalColors.RED}ERROR: Component file '{input_file}' not found.{TerminalColors.RESET}", file=sys.stderr)
                succeeded = False
    finally:
        # --- Execution Time ---
        duration = time.perf_counter() - start_time
        print(f"\n{TerminalColors.CYAN}--- Total Execution Time: {duration:.4f} seconds ---{TerminalColors.RESET}")

    if not succeeded:
        sys.exit(1)


if __name__ == "__main__":
    main()
