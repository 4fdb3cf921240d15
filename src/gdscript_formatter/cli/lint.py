from collections import defaultdict
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from gdscript_formatter.cli.output import configure_logging, console
from gdscript_formatter.config import LinterConfig
from gdscript_formatter.linter import GDScriptLinter, parse_disabled_rules, validate_rule_names
from gdscript_formatter.linter.registry import create_rules
from gdscript_formatter.models import LintIssue, LintSeverity

_SEVERITY_STYLES = {
    LintSeverity.ERROR: ("ERROR", "red"),
    LintSeverity.WARNING: ("WARN", "yellow"),
}


def lint_files(
    files: Annotated[list[Path], typer.Argument(exists=True, dir_okay=False, help="GDScript files to lint.")],
    disable: Annotated[str, typer.Option(help="Comma separated rule names to disable.")] = "",
    max_line_length: Annotated[int, typer.Option(min=1, help="Maximum line length (tabs count as 4).")] = 100,
    pretty: Annotated[bool, typer.Option("--pretty", help="Group issues by file and line.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    """Check GDScript files against the style guide. Exits with 1 when issues are found."""
    configure_logging(verbose)
    disabled = parse_disabled_rules(disable)
    try:
        validate_rule_names(disabled)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--disable") from exc

    scripts = [path for path in files if path.suffix == ".gd"]
    if not scripts:
        raise typer.BadParameter("No GDScript files found. Please provide at least one .gd file.")

    linter = GDScriptLinter(LinterConfig(disabled_rules=disabled, max_line_length=max_line_length))
    results = {path: linter.lint(path.read_text(encoding="utf-8"), str(path)) for path in scripts}
    results = {path: issues for path, issues in results.items() if issues}

    if pretty:
        _print_pretty(results)
    else:
        for path, issues in results.items():
            for issue in issues:
                typer.echo(issue.format(str(path)))

    if results:
        raise typer.Exit(1)


def _print_pretty(results: dict[Path, list[LintIssue]]) -> None:
    for file_index, (path, issues) in enumerate(results.items()):
        if file_index:
            console.print()
            console.rule()
        console.print(f"[bold]{path}[/bold]")

        by_line: dict[int, list[LintIssue]] = defaultdict(list)
        for issue in issues:
            by_line[issue.line].append(issue)
        for line_index, line in enumerate(sorted(by_line)):
            if line_index:
                console.print()
            console.print(f"    {path}:{line}", highlight=False)
            for issue in by_line[line]:
                label, style = _SEVERITY_STYLES[issue.severity]
                console.print(f"        [{style}]{label}[/{style}]: `{issue.rule}`", highlight=False)
                console.print(f"        {issue.message}", highlight=False, markup=False)


def list_rules() -> None:
    """List the available lint rules."""
    table = Table(title="Lint rules")
    table.add_column("Rule", style="cyan")
    table.add_column("Checks")
    for rule in create_rules(LinterConfig()):
        kinds = ", ".join(sorted(rule.target_node_kinds)) or "source text"
        table.add_row(rule.name, kinds)
    console.print(table)
