import json
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from json_patch_stream.agent.streaming import StreamStats
from json_patch_stream.validators.patch_validator import PatchValidationResult

console = Console()
err_console = Console(stderr=True)


def print_start_panel(model_name: str, schema_name: str, prompt_len: int) -> None:
    """Print the start panel of a generation run."""
    console.print()
    console.print(
        Panel(
            f"[bold]Model:[/bold] {model_name}\n"
            f"[bold]Schema:[/bold] {schema_name}\n"
            f"[bold]Prompt:[/bold] {prompt_len} characters",
            title="[bold cyan]Streaming JSON Patch[/bold cyan]",
            border_style="cyan",
        )
    )
    console.print()


def print_stream_summary(stats: StreamStats) -> None:
    """Print accepted/rejected counts and the reasons for each rejection."""
    style = "green" if stats.rejected == 0 else "yellow"
    lines = [
        f"[bold]Accepted operations:[/bold] [green]{stats.accepted}[/green]",
        f"[bold]Rejected operations:[/bold] [{style}]{stats.rejected}[/{style}]",
    ]
    for rejection in stats.rejections:
        lines.append("")
        lines.append(f"[dim]{rejection['line']}[/dim]")
        for message in rejection["errors"]:
            lines.append(f"  [red]-[/red] {message}")

    console.print(
        Panel(
            "\n".join(lines),
            title=f"[bold {style}]Result[/bold {style}]",
            border_style=style,
        )
    )
    console.print()


def print_pointer_table(verdicts: list[tuple[str, bool]]) -> None:
    """Print one row per pointer with its reachability verdict."""
    table = Table(
        title="[bold cyan]Pointer reachability[/bold cyan]",
        box=box.ROUNDED,
        expand=True,
    )
    table.add_column("Pointer", style="bold")
    table.add_column("Verdict", width=10)

    for pointer, valid in verdicts:
        verdict = Text("valid", style="green") if valid else Text("invalid", style="red")
        table.add_row(pointer or '""', verdict)

    console.print(table)


def print_patch_report(
    operations: list[Any], result: PatchValidationResult
) -> None:
    """Print a table of patch errors, or a success panel when there are none."""
    if result.valid:
        console.print(
            Panel(
                f"[bold green]{len(operations)} operation(s) are valid.[/bold green]",
                title="[bold green]Result[/bold green]",
                border_style="green",
            )
        )
        return

    table = Table(
        title=f"[bold red]{len(result.errors)} error(s)[/bold red]",
        box=box.ROUNDED,
        expand=True,
    )
    table.add_column("#", justify="right", width=4)
    table.add_column("Operation", style="dim")
    table.add_column("Error", style="red")

    for error in result.errors:
        if 0 <= error.operation < len(operations):
            op_text = json.dumps(operations[error.operation], ensure_ascii=False)
        else:
            op_text = "-"
        table.add_row(str(error.operation), op_text, error.message)

    console.print(table)


def print_error_panel(message: str) -> None:
    """Print the error panel."""
    console.print(
        Panel(
            f"[red]{message}[/red]",
            title="[bold red]Error[/bold red]",
            border_style="red",
        )
    )
    console.print()
