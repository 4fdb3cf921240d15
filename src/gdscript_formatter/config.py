import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt


class IndentPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    unit: Literal["tabs", "spaces"] = "tabs"
    size: PositiveInt = 4

    @property
    def string(self) -> str:
        """The text of one indentation level."""
        if self.unit == "spaces":
            return " " * self.size
        return "\t"


class FormatterConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    indent_size: PositiveInt = 4
    use_spaces: bool = False
    reorder_code: bool = False
    safe: bool = False

    @property
    def indent(self) -> IndentPolicy:
        return IndentPolicy(unit="spaces" if self.use_spaces else "tabs", size=self.indent_size)


class LinterConfig(BaseModel):
    disabled_rules: set[str] = Field(default_factory=set)
    max_line_length: PositiveInt = 100


class EngineSettings(BaseModel):
    """Where to find Topiary and the GDScript formatting ruleset."""

    model_config = ConfigDict(frozen=True)

    executable: str = "topiary"
    query_path: Path | None = None
    configuration_path: Path | None = None
    timeout: float | None = None

    @classmethod
    def from_env(cls) -> "EngineSettings":
        query = os.getenv("GDSCRIPT_FORMATTER_QUERY")
        configuration = os.getenv("GDSCRIPT_FORMATTER_TOPIARY_CONFIG")
        timeout = os.getenv("GDSCRIPT_FORMATTER_TIMEOUT")
        return cls(
            executable=os.getenv("GDSCRIPT_FORMATTER_TOPIARY", "topiary"),
            query_path=Path(query) if query else None,
            configuration_path=Path(configuration) if configuration else None,
            timeout=float(timeout) if timeout else None,
        )
