import typer

from gdscript_formatter.cli.format import format_files
from gdscript_formatter.cli.lint import lint_files, list_rules

app = typer.Typer(
    name="gdscript-formatter",
    help="Format and lint GDScript files.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("format")(format_files)
app.command("lint")(lint_files)
app.command("rules")(list_rules)


def main() -> None:
    app()
