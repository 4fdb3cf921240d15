import pytest

from gdscript_formatter.config import FormatterConfig
from gdscript_formatter.core.pipeline import Formatter, format_gdscript
from gdscript_formatter.engines import PassthroughEngine
from gdscript_formatter.errors import (
    EncodingError,
    EngineError,
    ReorderError,
    ReorderWarning,
    StructureChangedError,
)


class _RaisingReorderer:
    def reorder(self, source: str) -> str:
        raise ReorderError("cannot classify declarations")


class _ReversingReorderer:
    def reorder(self, source: str) -> str:
        return "".join(reversed(source.splitlines(keepends=True)))


class TestCorrectivePasses:
    """Tests for the passes that run around the engine."""

    def test_blank_lines_after_extends_are_removed(self, passthrough_engine: PassthroughEngine) -> None:
        result = format_gdscript("extends Node\n\n\nvar x = 1\n", engine=passthrough_engine)

        assert result == "extends Node\nvar x = 1\n"

    def test_trailing_semicolons_are_removed(self, passthrough_engine: PassthroughEngine) -> None:
        result = format_gdscript("var x = 1;\nvar y = 2 ;  \n", engine=passthrough_engine)

        assert result == "var x = 1\nvar y = 2\n"

    def test_semicolon_alone_on_a_line_is_removed_with_the_line(self, fixed_output_engine) -> None:
        engine = fixed_output_engine(b"func f():\n\tfoo()\n\t;\n\tbar()\n")

        assert format_gdscript("func f():\n\tfoo();bar()\n", engine=engine) == "func f():\n\tfoo()\n\tbar()\n"

    def test_whitespace_only_lines_are_emptied(self, passthrough_engine: PassthroughEngine) -> None:
        result = format_gdscript("var x = 1\n  \t\nvar y = 2\n", engine=passthrough_engine)

        assert result == "var x = 1\n\nvar y = 2\n"

    def test_long_blank_runs_are_collapsed(self, passthrough_engine: PassthroughEngine) -> None:
        result = format_gdscript("var x = 1\n\n\n\n\n\nvar y = 2\n", engine=passthrough_engine)

        assert result == "var x = 1\n\n\nvar y = 2\n"

    def test_string_literals_are_untouched(self, passthrough_engine: PassthroughEngine) -> None:
        source = 'var s = """a;\n   \n\n\n\n\nb;"""\n'

        assert format_gdscript(source, engine=passthrough_engine) == source

    def test_functions_are_spaced(self, passthrough_engine: PassthroughEngine) -> None:
        result = format_gdscript("func a():\n\tpass\nfunc b():\n\tpass\n", engine=passthrough_engine)

        assert result == "func a():\n\tpass\n\n\nfunc b():\n\tpass\n"

    def test_formatting_is_idempotent(self, passthrough_engine: PassthroughEngine) -> None:
        source = "extends Node\n\nvar x = 1;\nfunc a():\n\tpass\n\n\n\n\nfunc b():\n\tpass\nvar y = 2\n"

        once = format_gdscript(source, engine=passthrough_engine)

        assert format_gdscript(once, engine=passthrough_engine) == once


class TestEngineBoundary:
    """Tests for how engine output and failures are handled."""

    def test_engine_output_replaces_the_buffer(self, fixed_output_engine) -> None:
        engine = fixed_output_engine(b"var x = 1;\n")

        assert format_gdscript("var   x=1\n", engine=engine) == "var x = 1\n"

    def test_engine_receives_the_indent_policy(self, fixed_output_engine) -> None:
        engine = fixed_output_engine(b"var x = 1\n")

        format_gdscript("var x = 1\n", FormatterConfig(use_spaces=True, indent_size=2), engine=engine)

        _, indent = engine.calls[0]
        assert indent.string == "  "

    def test_engine_error_propagates(self, failing_engine) -> None:
        with pytest.raises(EngineError, match="boom"):
            format_gdscript("var x = 1\n", engine=failing_engine(EngineError("boom")))

    def test_unexpected_engine_failure_becomes_engine_error(self, failing_engine) -> None:
        with pytest.raises(EngineError) as excinfo:
            format_gdscript("var x = 1\n", engine=failing_engine(RuntimeError("crashed")))

        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_invalid_utf8_raises_encoding_error(self, fixed_output_engine) -> None:
        with pytest.raises(EncodingError):
            format_gdscript("var x = 1\n", engine=fixed_output_engine(b"var x = \xff\n"))

    def test_default_engine_needs_a_query_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GDSCRIPT_FORMATTER_QUERY", raising=False)

        with pytest.raises(EngineError, match="GDSCRIPT_FORMATTER_QUERY"):
            Formatter()


class TestSafeMode:
    """Tests for the structural equivalence check."""

    def test_dropped_declaration_is_rejected(self, dropping_engine) -> None:
        config = FormatterConfig(safe=True)

        with pytest.raises(StructureChangedError, match="structure has changed"):
            format_gdscript("var x = 1\nvar y = 2\n", config, engine=dropping_engine(b"var y"))

    def test_intended_changes_pass(self, passthrough_engine: PassthroughEngine) -> None:
        config = FormatterConfig(safe=True)
        source = "extends Node\n\nvar x = 1;\nfunc a():\n\tpass\nfunc b():\n\tpass\n"

        result = format_gdscript(source, config, engine=passthrough_engine)

        assert result == "extends Node\nvar x = 1\n\n\nfunc a():\n\tpass\n\n\nfunc b():\n\tpass\n"

    def test_unsafe_mode_accepts_the_same_output(self, dropping_engine) -> None:
        result = format_gdscript("var x = 1\nvar y = 2\n", engine=dropping_engine(b"var y"))

        assert result == "var x = 1\n"


class TestReorderStage:
    """Tests for the optional reorder collaborator."""

    def test_reorderer_output_is_used(self, passthrough_engine: PassthroughEngine) -> None:
        config = FormatterConfig(reorder_code=True)

        result = format_gdscript(
            "var a = 1\nvar b = 2\n", config, engine=passthrough_engine, reorderer=_ReversingReorderer()
        )

        assert result == "var b = 2\nvar a = 1\n"

    def test_reorder_failure_is_a_warning(self, passthrough_engine: PassthroughEngine) -> None:
        config = FormatterConfig(reorder_code=True)

        with pytest.warns(ReorderWarning, match="cannot classify"):
            result = format_gdscript("var a = 1;\n", config, engine=passthrough_engine, reorderer=_RaisingReorderer())

        assert result == "var a = 1\n"

    def test_reorderer_is_skipped_when_disabled(self, passthrough_engine: PassthroughEngine) -> None:
        result = format_gdscript("var a = 1\nvar b = 2\n", engine=passthrough_engine, reorderer=_ReversingReorderer())

        assert result == "var a = 1\nvar b = 2\n"
