import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from rich.logging import RichHandler

from json_patch_stream.cli.rich_display import (
    console,
    err_console,
    print_error_panel,
    print_patch_report,
    print_pointer_table,
    print_start_panel,
    print_stream_summary,
)
from json_patch_stream.settings import get_settings
from json_patch_stream.validators import is_valid_pointer, validate_patch


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="json-patch-stream",
        description="Generate and validate JSON Patch operations against a JSON Schema.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Stream a document as validated JSONL patch operations
  json-patch-stream generate --schema profile.json --prompt "Alice, 35, engineer"

  # Check whether pointers can exist under a schema
  json-patch-stream check-pointer --schema profile.json /name /address/city

  # Validate a patch file (JSON array or JSONL)
  json-patch-stream check-patch --schema profile.json patch.jsonl
""",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser(
        "generate", help="Stream validated patch operations from the chat model"
    )
    _add_schema_argument(generate)
    prompt_group = generate.add_mutually_exclusive_group(required=True)
    prompt_group.add_argument("--prompt", "-p", type=str, help="Direct user prompt")
    prompt_group.add_argument(
        "--prompt-file", "-f", type=Path, help="File holding the user prompt"
    )
    generate.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Output file for the accepted JSONL operations (default: stdout)",
    )
    generate.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Silent mode (only the accepted operations)",
    )

    check_pointer = subparsers.add_parser(
        "check-pointer", help="Check JSON Pointer reachability"
    )
    _add_schema_argument(check_pointer)
    check_pointer.add_argument("pointers", nargs="+", help="JSON Pointers to check")

    check_patch = subparsers.add_parser(
        "check-patch", help="Validate a JSON Patch file"
    )
    _add_schema_argument(check_patch)
    check_patch.add_argument(
        "patch_file", type=Path, help="JSON array or JSONL file of patch operations"
    )

    return parser


def _add_schema_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--schema", "-s", type=Path, required=True, help="Target JSON Schema file"
    )


def configure_logging(level: str) -> None:
    # Log records go to stderr so they never mix with JSONL written to stdout.
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _read_text(path: Path, label: str) -> str:
    """Read a UTF-8 input file, exiting with status 1 when it cannot be read."""
    if not path.exists():
        print(f"Error: {label} file not found: {path}", file=sys.stderr)
        sys.exit(1)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: Cannot read {label.lower()} file {path}: {e}", file=sys.stderr)
        sys.exit(1)


def _read_schema(path: Path) -> Any:
    """Read and parse the JSON schema file."""
    content = _read_text(path, "Schema")
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid schema: {e}", file=sys.stderr)
        sys.exit(1)


def _read_patch(path: Path) -> Any:
    """Read a patch file holding either a JSON array or JSONL operations."""
    content = _read_text(path, "Patch")
    try:
        document = json.loads(content)
    except json.JSONDecodeError:
        document = None
    if isinstance(document, list):
        return document

    # Anything else is read as JSONL, one operation per line.
    operations = []
    for lineno, line in enumerate(content.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            operations.append(json.loads(line))
        except json.JSONDecodeError as e:
            print(f"Error: Invalid patch line {lineno}: {e}", file=sys.stderr)
            sys.exit(1)
    return operations


def _read_prompt(args: argparse.Namespace) -> str:
    if args.prompt:
        return args.prompt
    return _read_text(args.prompt_file, "Prompt")


def _run_generate(args: argparse.Namespace) -> int:
    from json_patch_stream.agent.streaming import PatchStreamAgent

    schema = _read_schema(args.schema)
    prompt = _read_prompt(args)
    settings = get_settings()

    if not args.quiet:
        print_start_panel(settings.CHAT_MODEL, str(args.schema), len(prompt))

    try:
        agent = PatchStreamAgent(schema, max_depth=settings.MAX_RESOLUTION_DEPTH)
        if args.output:
            with args.output.open("w", encoding="utf-8") as f:
                for line in agent.stream(prompt):
                    f.write(f"{line}\n")
        else:
            for line in agent.stream(prompt):
                print(line, flush=True)
    except Exception as e:
        if not args.quiet:
            print_error_panel(f"Error during generation: {e}")
        else:
            print(f"Error during generation: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        if args.output:
            console.print(f"[green]Operations saved in:[/green] {args.output}")
        print_stream_summary(agent.stats)
    return 0


def _run_check_pointer(args: argparse.Namespace) -> int:
    schema = _read_schema(args.schema)
    max_depth = get_settings().MAX_RESOLUTION_DEPTH
    verdicts = [
        (pointer, is_valid_pointer(pointer, schema, max_depth=max_depth))
        for pointer in args.pointers
    ]
    print_pointer_table(verdicts)
    return 0 if all(valid for _, valid in verdicts) else 1


def _run_check_patch(args: argparse.Namespace) -> int:
    schema = _read_schema(args.schema)
    operations = _read_patch(args.patch_file)
    result = validate_patch(
        operations, schema, max_depth=get_settings().MAX_RESOLUTION_DEPTH
    )
    print_patch_report(operations if isinstance(operations, list) else [], result)
    return 0 if result.valid else 1


_COMMANDS = {
    "generate": _run_generate,
    "check-pointer": _run_check_pointer,
    "check-patch": _run_check_patch,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point of the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(get_settings().LOG_LEVEL)
    return _COMMANDS[args.command](args)
