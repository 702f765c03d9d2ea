"""
Root Typer application for the quilldoc CLI.

Commands:
    build     Build the HTML site from a source directory
    init      Write a starter quilldoc.yaml and index.rst
    extract   Show what quilldoc extracts from one module
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape
from typer import Typer

from quilldoc.cli.utils import console, err_console, print_error, print_module, print_report, setup_logging
from quilldoc.errors import ModuleImportError, QuilldocError

app = Typer(
    name="quilldoc",
    help="quilldoc: static documentation sites from docstrings.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from quilldoc import __version__

        typer.echo(f"quilldoc {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug events to stderr."),
) -> None:
    """quilldoc: build static documentation sites from docstrings."""
    setup_logging(verbose)


# ── build ────────────────────────────────────────────────────────────────


@app.command("build")
def build(
    source_dir: Path = typer.Argument(
        Path("."), help="Directory containing quilldoc.yaml and the root document."
    ),
    output: Path | None = typer.Option(  # noqa: UP007
        None, "--output", "-o", help="Output directory (overrides output_dir in quilldoc.yaml)."
    ),
    fail_on_warning: bool = typer.Option(
        False, "--fail-on-warning", "-W", help="Exit 1 if there were warnings or import failures."
    ),
) -> None:
    """Build the HTML site."""
    from quilldoc.orchestrator import BuildOrchestrator

    try:
        report = BuildOrchestrator(source_dir, output_dir=output).build()
    except QuilldocError as e:
        print_error(e)
        raise typer.Exit(1) from e

    print_report(report)
    if fail_on_warning and not report.ok:
        err_console.print("[red]Failing because --fail-on-warning is set.[/red]")
        raise typer.Exit(1)


# ── init ─────────────────────────────────────────────────────────────────


@app.command("init")
def init(
    target: Path = typer.Argument(Path("."), help="Directory to create the project in."),
    project: str = typer.Option(..., "--project", "-p", help="Project name."),
    author: str = typer.Option("", "--author", "-a", help="Author name."),
    release: str = typer.Option("", "--release", "-r", help="Release string, e.g. 1.0.2."),
    search_path: list[str] | None = typer.Option(  # noqa: UP007
        None, "--search-path", "-s", help="Module search path relative to DIR (repeatable)."
    ),
    module: list[str] | None = typer.Option(  # noqa: UP007
        None, "--module", "-m", help="Module to list in the root toctree (repeatable)."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing files."),
) -> None:
    """Create quilldoc.yaml, index.rst and _static/ in DIR."""
    from quilldoc.quickstart import generate_project

    try:
        written = generate_project(
            target,
            project=project,
            author=author,
            release=release,
            search_paths=search_path or [],
            modules=module or [],
            force=force,
        )
    except QuilldocError as e:
        print_error(e)
        raise typer.Exit(1) from e

    for path in written:
        console.print(f"[green]✓[/green] Created {escape(str(path))}")
    console.print(f"\nRun `quilldoc build {escape(str(target))}` to build the site.")


# ── extract ──────────────────────────────────────────────────────────────


@app.command("extract")
def extract(
    module: str = typer.Argument(..., help="Dotted module name."),
    search_path: list[Path] | None = typer.Option(  # noqa: UP007
        None, "--search-path", "-s", help="Directory to search first (repeatable; default: .)."
    ),
    dialect: list[str] | None = typer.Option(  # noqa: UP007
        None, "--dialect", "-d", help="Docstring dialect to try: numpy, google (repeatable)."
    ),
    private: bool = typer.Option(False, "--private", help="Include _private members."),
    json_out: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
) -> None:
    """Show the members and parsed docstrings of MODULE."""
    from quilldoc.extractor import DocExtractor
    from quilldoc.parser.docstrings import DEFAULT_DIALECTS
    from quilldoc.scanner import SourceScanner

    unknown = [d for d in dialect or [] if d not in DEFAULT_DIALECTS]
    if unknown:
        err_console.print(f"[bold red]Error[/bold red]: unknown dialect(s): {escape(', '.join(unknown))}")
        raise typer.Exit(1)

    scanner = SourceScanner(search_path or [Path(".")])
    location = scanner.resolve(module)
    if location is None:
        err_console.print(f"[bold red]Error[/bold red]: module {escape(module)} not found")
        raise typer.Exit(1)

    try:
        loaded = scanner.load(location)
    except ModuleImportError as e:
        print_error(e)
        raise typer.Exit(1) from e

    extractor = DocExtractor(dialects=tuple(dialect) if dialect else DEFAULT_DIALECTS, private_members=private)
    print_module(extractor.extract(loaded), as_json=json_out)
