"""Output formatting for vaultctl.

Results go to stdout as JSON or Rich tables; messages and progress bars go
to stderr so JSON output stays machine readable.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from enum import Enum
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from vaultctl.models.progress import OperationPhase, UploadProgress

# =============================================================================
# Console Instances
# =============================================================================

console = Console()
err_console = Console(stderr=True)


# =============================================================================
# Output Format
# =============================================================================


class OutputFormat(Enum):
    """Output format options."""

    JSON = "json"
    TABLE = "table"

    @classmethod
    def from_string(cls, value: str) -> OutputFormat:
        """Create from string value."""
        return cls(value.lower())


def _format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return str(value)


# =============================================================================
# Table Output
# =============================================================================


def print_table(
    rows: Sequence[dict[str, Any]],
    columns: Sequence[str],
    *,
    title: str | None = None,
) -> None:
    """Print rows as a Rich table with the given column keys."""
    if not rows:
        console.print("[dim]No results[/dim]")
        return

    table = Table(title=title, show_header=True, header_style="bold")
    for col in columns:
        table.add_column(col.replace("_", " ").title())
    for row in rows:
        table.add_row(*(_format_cell(row.get(col)) for col in columns))

    console.print(table)


def print_key_value(data: dict[str, Any], *, title: str | None = None) -> None:
    """Print key-value pairs aligned on the key column."""
    if title:
        console.print(f"[bold]{title}[/bold]")

    labels = {key: key.replace("_", " ").title() for key in data}
    width = max((len(label) for label in labels.values()), default=0)

    for key, value in data.items():
        if value is None:
            shown = "[dim]-[/dim]"
        elif isinstance(value, bool):
            shown = "[green]Yes[/green]" if value else "[red]No[/red]"
        else:
            shown = _format_cell(value)
        console.print(f"  {labels[key]:<{width}}  {shown}")


# =============================================================================
# JSON Output
# =============================================================================


def print_json(data: Any, *, indent: int = 2) -> None:
    """Print data as JSON."""
    print(json.dumps(data, indent=indent, default=str))


# =============================================================================
# Unified Output
# =============================================================================


def print_output(
    data: Any,
    *,
    format: OutputFormat = OutputFormat.TABLE,
    columns: Sequence[str] | None = None,
    title: str | None = None,
    quiet: bool = False,
    id_field: str = "deposit_id",
) -> None:
    """Print data in the specified format.

    Args:
        data: Data to print (dict, list, or scalar).
        format: Output format.
        columns: Columns for table format.
        title: Optional title.
        quiet: If True, only print ids.
        id_field: Field printed in quiet mode.
    """
    if quiet:
        items = data if isinstance(data, list) else [data]
        for item in items:
            print(item.get(id_field, "") if isinstance(item, dict) else item)
        return

    if format == OutputFormat.JSON:
        print_json(data)
    elif isinstance(data, list) and columns:
        print_table(data, columns, title=title)
    elif isinstance(data, dict):
        print_key_value(data, title=title)
    else:
        print_json(data)


# =============================================================================
# Status Messages
# =============================================================================


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[red]Error:[/red] {message}")


def print_warning(message: str) -> None:
    """Print warning message to stderr."""
    err_console.print(f"[yellow]Warning:[/yellow] {message}")


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[green]✓[/green] {message}")


def print_info(message: str) -> None:
    """Print info message to stderr."""
    err_console.print(f"[blue]Info:[/blue] {message}")


# =============================================================================
# Progress
# =============================================================================


def create_progress() -> Progress:
    """Create a Rich progress bar for byte transfers."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeElapsedColumn(),
        console=err_console,
        transient=False,
    )


class DepositProgressDisplay:
    """Render Batcher progress events as a Rich progress bar.

    Use as a context manager and pass the instance as ``progress_callback``.
    Safe to call from worker threads.
    """

    def __init__(self, progress: Progress | None = None) -> None:
        self.progress = progress or create_progress()
        self._task: TaskID | None = None

    def __enter__(self) -> DepositProgressDisplay:
        self.progress.start()
        self._task = self.progress.add_task("Preparing deposit...", total=None)
        return self

    def __exit__(self, *args: Any) -> None:
        self.progress.stop()

    def __call__(self, event: UploadProgress) -> None:
        if self._task is None:
            return

        if event.phase == OperationPhase.UPLOADING:
            description = (
                f"Uploading {event.current}/{event.total} files"
                f" ({event.files_queued} queued, {event.files_uploading} uploading"
            )
            if event.files_failed:
                description += f", [red]{event.files_failed} failed[/red]"
            description += ")"
            self.progress.update(
                self._task,
                description=description,
                completed=event.bytes_sent,
                total=event.total_bytes or None,
            )
        elif event.phase == OperationPhase.FINALIZING:
            description = "Finalizing deposit"
            if event.status is not None:
                status = event.status
                description += (
                    f" ({status.resolved}/{status.total} files: {status.queued} queued,"
                    f" {status.uploading} uploading, {status.assembled} assembled,"
                    f" {status.in_storage} in storage, {status.errored} errored)"
                )
            self.progress.update(self._task, description=description)
        elif event.phase == OperationPhase.COMPLETE:
            self.progress.update(
                self._task,
                description=f"[green]Deposit {event.deposit_id} complete[/green]",
                completed=event.total_bytes,
                total=event.total_bytes or 1,
            )
        elif event.phase in (OperationPhase.ERROR, OperationPhase.CANCELLED):
            self.progress.update(self._task, description=f"[red]{event.message}[/red]")
        else:
            self.progress.update(self._task, description=event.message)
