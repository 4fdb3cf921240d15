import json
import logging
import subprocess
import tempfile
from pathlib import Path

from tree_sitter import Tree

from gdscript_formatter.config import EngineSettings, IndentPolicy
from gdscript_formatter.core.fingerprint import InlineLeadingAnnotations, NormalizationRule
from gdscript_formatter.errors import EngineError

logger = logging.getLogger(__name__)

LANGUAGE = "gdscript"


def build_configuration_overlay(indent: IndentPolicy, base_configuration: Path | None = None) -> str:
    """Nickel configuration that forces the indentation on top of an optional user configuration."""
    override = f"{{ languages.{LANGUAGE}.indent | force = {json.dumps(indent.string)} }}"
    if base_configuration is None:
        return override + "\n"
    return f"(import {json.dumps(str(base_configuration.resolve()))}) & {override}\n"


class TopiaryEngine:
    """Run the ``topiary`` CLI with a GDScript query file.

    Implements the ``FormattingEngine`` protocol. Topiary parses the text
    itself, so the tree handed in is not used.
    """

    normalization_rules: tuple[NormalizationRule, ...] = (InlineLeadingAnnotations(),)

    def __init__(
        self,
        query_path: Path,
        executable: str = "topiary",
        configuration_path: Path | None = None,
        timeout: float | None = None,
    ) -> None:
        self._query_path = query_path
        self._executable = executable
        self._configuration_path = configuration_path
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> "TopiaryEngine":
        if settings.query_path is None:
            raise EngineError(
                "No Topiary query file configured. Set GDSCRIPT_FORMATTER_QUERY to the GDScript formatting query."
            )
        return cls(
            settings.query_path,
            executable=settings.executable,
            configuration_path=settings.configuration_path,
            timeout=settings.timeout,
        )

    def command(self, configuration: Path) -> list[str]:
        return [
            self._executable,
            "--configuration",
            str(configuration),
            "format",
            "--language",
            LANGUAGE,
            "--query",
            str(self._query_path),
            "--tolerate-parsing-errors",
            "--skip-idempotence",
        ]

    def format(self, tree: Tree, source: bytes, indent: IndentPolicy) -> bytes:
        if not self._query_path.exists():
            raise EngineError(f"Topiary query file not found: {self._query_path}")

        with tempfile.TemporaryDirectory(prefix="gdscript-formatter-") as temp_dir:
            configuration = Path(temp_dir) / "languages.ncl"
            configuration.write_text(
                build_configuration_overlay(indent, self._configuration_path),
                encoding="utf-8",
            )
            cmd = self.command(configuration)
            logger.debug("Running %s", " ".join(cmd))
            try:
                result = subprocess.run(
                    cmd,
                    input=source,
                    check=False,
                    capture_output=True,
                    timeout=self._timeout,
                )
            except FileNotFoundError:
                raise EngineError(f"Topiary executable not found: {self._executable}") from None
            except subprocess.TimeoutExpired as exc:
                raise EngineError(f"Topiary did not finish within {self._timeout} seconds") from exc

        if result.returncode != 0:
            message = result.stderr.decode("utf-8", errors="replace").strip()
            raise EngineError(f"Topiary formatting failed: {message or f'exit code {result.returncode}'}")
        return result.stdout
