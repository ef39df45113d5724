"""Console rendering and conflict prompt for the vault-up CLI."""
from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from .models import BatchReport, ConflictResolution, ItemResult, UploadItem
from .services.workspace import WorkspaceListing
from .utils.formatting import format_size

console = Console()

_PALETTE = {
    "DONE": "green",
    "FAIL": "red",
    "SKIP": "yellow",
    "WAIT": "magenta",
    "SEND": "cyan",
}


def render_configuration_summary(config: Dict[str, Any]) -> None:
    """Render startup configuration summary."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else str(value)
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title="[bold green]vault-up[/bold green]",
        subtitle="[dim]vaultsync CLI[/dim]",
        border_style="blue",
    )
    console.print(panel)


def render_listing(listing: WorkspaceListing) -> None:
    """Print the refreshed folder contents."""
    if listing.is_empty:
        console.print("[dim]Workspace is empty.[/dim]")
        return

    table = Table(title="Workspace", show_lines=False)
    table.add_column("Type", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Size", justify="right")
    for folder in listing.folders:
        table.add_row("folder", escape(folder.name), "Collection")
    for entry in listing.files:
        table.add_row("file", escape(entry.name), format_size(entry.size_bytes))
    console.print(table)


class RichConflictPrompt:
    """
    Interactive conflict prompt.

    Runs the blocking ``Prompt.ask`` in a worker thread so the event loop
    keeps serving in-flight transfers. Ctrl-D / Ctrl-C dismiss the prompt,
    which counts as skip.
    """

    CHOICES = [r.value for r in ConflictResolution]

    def __init__(self, prompt_console: Optional[Console] = None):
        self._console = prompt_console or console

    def _ask(self, filename: str) -> Optional[str]:
        try:
            return Prompt.ask(
                f'Asset [bold]"{escape(filename)}"[/bold] already exists. Choose strategy',
                choices=self.CHOICES,
                default=ConflictResolution.SKIP.value,
                console=self._console,
            )
        except (EOFError, KeyboardInterrupt):
            return None

    async def __call__(self, filename: str) -> Optional[str]:
        return await asyncio.to_thread(self._ask, filename)


class BatchProgressDisplay:
    """Event-based console display for an upload batch."""

    def __init__(self, total: int = 0):
        self._total = total
        self._sizes: Dict[int, int] = {}

    def _emit_timeline(
        self,
        status: str,
        name: str,
        index: Optional[int] = None,
        size_bytes: Optional[int] = None,
        error: Optional[str] = None,
    ) -> None:
        stamp = time.strftime("%H:%M:%S")
        position = f"[{index + 1}/{self._total}] " if index is not None and self._total else ""
        size_label = f" {format_size(size_bytes)}" if size_bytes else ""
        error_label = f" cause={error}" if error else ""
        color = _PALETTE.get(status, "white")
        console.print(
            f"[dim]{stamp}[/dim] [{color}]{status:<4}[/{color}] "
            f"{position}{escape(name)}{size_label}{escape(error_label)}",
            highlight=False,
        )

    def on_item_start(self, index: int, item: UploadItem) -> None:
        self._sizes[index] = item.size_bytes
        self._emit_timeline("SEND", item.display_name, index, item.size_bytes)

    def on_conflict(self, index: int, item: UploadItem) -> None:
        self._emit_timeline("WAIT", item.display_name, index, error="name already exists")

    def on_item_complete(self, result: ItemResult) -> None:
        self._emit_timeline("DONE", result.filename, result.index, self._sizes.pop(result.index, None))

    def on_item_fail(self, result: ItemResult) -> None:
        self._sizes.pop(result.index, None)
        self._emit_timeline("FAIL", result.filename, result.index, error=result.error)

    def on_item_skip(self, result: ItemResult) -> None:
        self._sizes.pop(result.index, None)
        self._emit_timeline("SKIP", result.filename, result.index)

    def on_finish(self, report: BatchReport) -> None:
        tally = report.tally
        console.print(
            f"[bold]Finished[/bold] uploaded={tally.completed_count} total={tally.total} "
            f"failed={tally.failed_count} skipped={tally.skipped_count}"
        )
        for notice in report.failures:
            console.print(f"[red]Transfer failed:[/red] {escape(notice.name)} - {escape(notice.message)}")
        if tally.completed_count > 0:
            console.print(f"[green]Vault synchronized: {tally.completed_count} items secured.[/green]")
