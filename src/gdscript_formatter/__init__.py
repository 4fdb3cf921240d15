from gdscript_formatter.config import FormatterConfig, IndentPolicy, LinterConfig
from gdscript_formatter.core.batch import FormatOutcome, format_sources
from gdscript_formatter.core.pipeline import Formatter, format_gdscript
from gdscript_formatter.core.reorder import reorder_gdscript
from gdscript_formatter.errors import (
    EncodingError,
    EngineError,
    FormatError,
    ParseFailureError,
    ReorderError,
    ReorderWarning,
    StructureChangedError,
)
from gdscript_formatter.linter import lint_gdscript
from gdscript_formatter.models import LintIssue, LintSeverity

__all__ = [
    "EncodingError",
    "EngineError",
    "FormatError",
    "FormatOutcome",
    "Formatter",
    "FormatterConfig",
    "IndentPolicy",
    "LintIssue",
    "LintSeverity",
    "LinterConfig",
    "ParseFailureError",
    "ReorderError",
    "ReorderWarning",
    "StructureChangedError",
    "format_gdscript",
    "format_sources",
    "lint_gdscript",
    "reorder_gdscript",
]
