from .main import main
from .rich_display import (
    console,
    err_console,
    print_error_panel,
    print_patch_report,
    print_pointer_table,
    print_start_panel,
    print_stream_summary,
)

__all__ = [
    "main",
    "console",
    "err_console",
    "print_error_panel",
    "print_patch_report",
    "print_pointer_table",
    "print_start_panel",
    "print_stream_summary",
]
