from pathlib import Path

import pytest
from pydantic import ValidationError

from gdscript_formatter.config import EngineSettings, FormatterConfig, IndentPolicy, LinterConfig


class TestIndentPolicy:
    """Tests for the indentation unit."""

    def test_defaults_to_tabs(self) -> None:
        assert IndentPolicy().string == "\t"

    def test_spaces_use_size(self) -> None:
        assert IndentPolicy(unit="spaces", size=2).string == "  "

    def test_size_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            IndentPolicy(unit="spaces", size=0)

    def test_unknown_unit_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            IndentPolicy(unit="mixed")


class TestFormatterConfig:
    def test_indent_follows_options(self) -> None:
        assert FormatterConfig().indent == IndentPolicy(unit="tabs", size=4)
        assert FormatterConfig(use_spaces=True, indent_size=3).indent.string == "   "

    def test_is_frozen(self) -> None:
        config = FormatterConfig()

        with pytest.raises(ValidationError):
            config.safe = True


def test_linter_config_defaults() -> None:
    config = LinterConfig()

    assert config.disabled_rules == set()
    assert config.max_line_length == 100


class TestEngineSettings:
    """Tests for reading engine settings from the environment."""

    def test_defaults_without_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "GDSCRIPT_FORMATTER_TOPIARY",
            "GDSCRIPT_FORMATTER_QUERY",
            "GDSCRIPT_FORMATTER_TOPIARY_CONFIG",
            "GDSCRIPT_FORMATTER_TIMEOUT",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = EngineSettings.from_env()

        assert settings == EngineSettings()
        assert settings.executable == "topiary"
        assert settings.query_path is None

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("GDSCRIPT_FORMATTER_TOPIARY", "/usr/local/bin/topiary")
        monkeypatch.setenv("GDSCRIPT_FORMATTER_QUERY", str(tmp_path / "gdscript.scm"))
        monkeypatch.setenv("GDSCRIPT_FORMATTER_TOPIARY_CONFIG", str(tmp_path / "languages.ncl"))
        monkeypatch.setenv("GDSCRIPT_FORMATTER_TIMEOUT", "2.5")

        settings = EngineSettings.from_env()

        assert settings.executable == "/usr/local/bin/topiary"
        assert settings.query_path == tmp_path / "gdscript.scm"
        assert settings.configuration_path == tmp_path / "languages.ncl"
        assert settings.timeout == 2.5
