import logging
import sys
from enum import StrEnum
from pathlib import Path
from typing import Annotated

import typer

from gdscript_formatter.cli.output import configure_logging, err_console
from gdscript_formatter.config import EngineSettings, FormatterConfig
from gdscript_formatter.core.batch import EngineFactory, format_sources
from gdscript_formatter.core.pipeline import format_gdscript
from gdscript_formatter.engines import PassthroughEngine, TopiaryEngine
from gdscript_formatter.errors import FormatError

logger = logging.getLogger(__name__)


class EngineChoice(StrEnum):
    TOPIARY = "topiary"
    PASSTHROUGH = "passthrough"


def _engine_factory(choice: EngineChoice) -> EngineFactory:
    if choice == EngineChoice.PASSTHROUGH:
        return PassthroughEngine
    settings = EngineSettings.from_env()
    # Fail before any file is read when Topiary is not configured.
    TopiaryEngine.from_settings(settings)
    return lambda: TopiaryEngine.from_settings(settings)


def format_files(
    files: Annotated[
        list[Path] | None,
        typer.Argument(exists=True, dir_okay=False, help="GDScript files to format. Reads stdin when omitted."),
    ] = None,
    check: Annotated[bool, typer.Option("--check", help="Only report files that would change.")] = False,
    stdout: Annotated[bool, typer.Option("--stdout", help="Print the result instead of writing files.")] = False,
    use_spaces: Annotated[bool, typer.Option("--use-spaces", help="Indent with spaces instead of tabs.")] = False,
    indent_size: Annotated[int, typer.Option(min=1, help="Spaces per indentation level.")] = 4,
    reorder_code: Annotated[
        bool, typer.Option("--reorder-code", help="Reorder declarations following the style guide.")
    ] = False,
    safe: Annotated[
        bool, typer.Option("--safe", help="Refuse output whose syntax tree differs from the input.")
    ] = False,
    engine: Annotated[EngineChoice, typer.Option(help="Pretty-printer to run.")] = EngineChoice.TOPIARY,
    jobs: Annotated[int | None, typer.Option(min=1, help="Number of files formatted in parallel.")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log every pipeline stage.")] = False,
) -> None:
    """Format GDScript files in place, or stdin to stdout."""
    configure_logging(verbose)
    if safe and reorder_code:
        raise typer.BadParameter("--safe cannot be combined with --reorder-code")

    config = FormatterConfig(indent_size=indent_size, use_spaces=use_spaces, reorder_code=reorder_code, safe=safe)
    try:
        engine_factory = _engine_factory(engine)
    except FormatError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from None

    if not files:
        _format_stdin(config, engine_factory, check)
        return

    scripts = [path for path in files if path.suffix == ".gd"]
    for skipped in sorted(set(files) - set(scripts)):
        logger.warning("Skipping %s: not a .gd file", skipped)
    if not scripts:
        raise typer.BadParameter("No GDScript files found. Please provide at least one .gd file.")

    sources = [path.read_text(encoding="utf-8") for path in scripts]
    outcomes = format_sources(sources, config, engine_factory=engine_factory, max_workers=jobs)

    failed = False
    would_change = False
    for path, outcome in zip(scripts, outcomes):
        if outcome.error is not None:
            err_console.print(f"[red]Failed to format {path}: {outcome.error}[/red]")
            failed = True
        elif check:
            if outcome.changed:
                err_console.print(f"Would reformat {path}")
                would_change = True
        elif stdout:
            typer.echo(outcome.formatted, nl=False)
        elif outcome.changed:
            path.write_text(outcome.formatted, encoding="utf-8")
            err_console.print(f"[green]Formatted[/green] {path}")

    if check and not would_change and not failed:
        err_console.print(f"[green]{len(scripts)} file(s) already formatted[/green]")
    if failed or would_change:
        raise typer.Exit(1)


def _format_stdin(config: FormatterConfig, engine_factory: EngineFactory, check: bool) -> None:
    source = sys.stdin.read()
    try:
        formatted = format_gdscript(source, config, engine=engine_factory())
    except FormatError as exc:
        err_console.print(f"[red]Failed to format stdin: {exc}[/red]")
        raise typer.Exit(1) from None

    if check:
        if formatted != source:
            err_console.print("Would reformat stdin")
            raise typer.Exit(1)
        return
    typer.echo(formatted, nl=False)
