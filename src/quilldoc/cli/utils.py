"""
CLI utility helpers: logging setup and output formatting.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from quilldoc.errors import BrokenReferenceError, QuilldocError
from quilldoc.logging import configure_logging
from quilldoc.models import BuildReport, ModuleDoc
from quilldoc.settings import QuilldocSettings

console = Console()
err_console = Console(stderr=True)


# ── Logging ──────────────────────────────────────────────────────────────


def setup_logging(verbose: bool = False) -> None:
    """Configure structlog from ``QUILLDOC_*`` settings (``-v`` forces DEBUG)."""
    settings = QuilldocSettings()
    configure_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_format=settings.log_json,
    )


# ── Output helpers ───────────────────────────────────────────────────────


def print_error(error: QuilldocError) -> None:
    """Render a fatal error to stderr."""
    err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {escape(str(error))}")
    if isinstance(error, BrokenReferenceError):
        for ref in error.references:
            err_console.print(f"  • {escape(ref.describe())}")


def print_report(report: BuildReport) -> None:
    """Summarise a finished build: import failures, warnings, pages written."""
    if report.import_failures:
        table = Table(title="Import failures", show_lines=False, pad_edge=False)
        table.add_column("Module", style="cyan")
        table.add_column("Error", overflow="fold")
        for failure in report.import_failures:
            table.add_row(failure.module, f"{failure.error_type}: {failure.message}")
        err_console.print(table)

    for warning in report.warnings:
        err_console.print(f"[yellow]WARNING:[/yellow] {escape(warning)}")

    status = "[green]✓[/green]" if report.ok else "[yellow]![/yellow]"
    console.print(
        f"{status} Build finished: {len(report.pages_written)} pages written to "
        f"{escape(str(report.output_dir))}"
    )
    if not report.ok:
        console.print(
            f"  [dim]{len(report.import_failures)} import failure(s), "
            f"{len(report.warnings)} warning(s)[/dim]"
        )


def print_module(doc: ModuleDoc, *, as_json: bool = False) -> None:
    """Render an extracted module as a member table (or JSON)."""
    if as_json:
        console.print_json(json.dumps(_to_dict(doc), default=str))
        return

    console.print(f"[bold]{escape(doc.name)}[/bold]  [dim]{escape(str(doc.file or ''))}[/dim]")
    if doc.docstring.summary:
        console.print(f"  {escape(doc.docstring.summary)}")

    members = list(doc.walk())
    if not members:
        console.print("[dim]No members.[/dim]")
        return

    table = Table(show_lines=False, pad_edge=False)
    table.add_column("Member", style="cyan", overflow="fold")
    table.add_column("Kind")
    table.add_column("Signature", overflow="fold")
    table.add_column("Dialect")
    table.add_column("Params", justify="right")
    table.add_column("Returns")
    for member in members:
        docstring = member.docstring
        table.add_row(
            escape(member.qualname),
            member.kind,
            escape(member.signature),
            docstring.dialect or ("-" if member.documented else "[red]undocumented[/red]"),
            str(len(docstring.params)),
            "yes" if docstring.returns is not None else "",
        )
    console.print(table)


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}
