import argparse
import logging
import os
import sys
import time

from .analysis import AnalysisPipeline
from .utils import TerminalColors
from .validators.core.classes import Severity

# Artifacts that can be written with --dump, and what they hold.
DUMP_MAP = {
    "symbols": "Symbol Table",
    "references": "Reference List",
    "diagnostics": "Diagnostics",
}


def format_diagnostic(diagnostic, display_path: str) -> str:
    if diagnostic.severity == Severity.ERROR:
        color, label = TerminalColors.RED, "error"
    else:
        color, label = TerminalColors.YELLOW, "warning"
    location = f"{display_path}:{diagnostic.span.s_line + 1}:{diagnostic.span.s_col + 1}"
    return f"{location}: {color}{label}{TerminalColors.RESET}: {diagnostic.message} [{diagnostic.code}]"


def main():
    start_time = time.perf_counter()

    dump_help_text = "Write an analysis artifact as JSON. "
    for name, desc in DUMP_MAP.items():
        dump_help_text += f"'{name}' for the {desc}. "

    parser = argparse.ArgumentParser(description="Check a TaskJuggler .tjp/.tji file and report diagnostics.")
    parser.add_argument(
        "input_file",
        nargs="?",
        default=None,
        help="The path to the input .tjp or .tji file. Omit to read from stdin.",
    )
    parser.add_argument("-d", "--dump", type=str, choices=DUMP_MAP.keys(), help=dump_help_text)
    parser.add_argument(
        "-o",
        "--output",
        dest="output_file",
        help="The path of the JSON file written by --dump. Defaults to '<input>.<artifact>.json'.",
    )
    parser.add_argument("--lsp", action="store_true", help="Start the language server on stdio.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.lsp:
        from .server import start_server

        start_server()
        return

    # --- Input Validation ---
    if not args.input_file and sys.stdin.isatty():
        parser.error("input_file is required when not reading from a pipe.")

    display_path = args.input_file or "stdin"
    print(f"--- Checking {display_path} ---")

    try:
        # --- Read Input ---
        if not args.input_file:
            text = sys.stdin.read()
            input_file_path_abs = None
        else:
            input_file_path_abs = os.path.abspath(args.input_file)
            with open(input_file_path_abs, "r", encoding="utf-8") as f:
                text = f.read()

        # --- Run Analysis ---
        pipeline = AnalysisPipeline(text, file_path=input_file_path_abs)
        diagnostics = pipeline.run()

        if args.dump:
            output_path = pipeline.save_artifact(args.dump, args.output_file)
            print(f"--- Artifact '{args.dump}' ({DUMP_MAP[args.dump]}) written to {output_path} ---")

        # --- Report ---
        for diagnostic in diagnostics:
            print(format_diagnostic(diagnostic, display_path))

        errors = sum(1 for d in diagnostics if d.severity == Severity.ERROR)
        warnings = len(diagnostics) - errors
        if errors:
            print(f"\n{TerminalColors.RED}--- {errors} error(s), {warnings} warning(s) ---{TerminalColors.RESET}")
            sys.exit(1)
        print(f"\n{TerminalColors.GREEN}--- No errors, {warnings} warning(s) ---{TerminalColors.RESET}")

    except FileNotFoundError:
        print(
            f"{TerminalColors.RED}ERROR: File '{display_path}' not found.{TerminalColors.RESET}",
            file=sys.stderr,
        )
        sys.exit(1)

    finally:
        end_time = time.perf_counter()
        duration = end_time - start_time
        print(f"\n{TerminalColors.CYAN}--- Total Execution Time: {duration:.4f} seconds ---{TerminalColors.RESET}")


if __name__ == "__main__":
    main()
