import logging
import re
import warnings

from gdscript_formatter.config import EngineSettings, FormatterConfig
from gdscript_formatter.core.document import SyntaxDocument
from gdscript_formatter.core.fingerprint import (
    PIPELINE_RULES,
    Fingerprint,
    build_fingerprint,
    first_mismatch,
    normalize,
)
from gdscript_formatter.core.parser import get_gdscript_language
from gdscript_formatter.core.ports.engine import FormattingEngine
from gdscript_formatter.core.ports.reorder import Reorderer
from gdscript_formatter.core.reorder import StyleGuideReorderer
from gdscript_formatter.core.spacing import apply_two_blank_lines
from gdscript_formatter.engines.topiary import TopiaryEngine
from gdscript_formatter.errors import EncodingError, EngineError, FormatError, ReorderWarning, StructureChangedError

logger = logging.getLogger(__name__)

EXTENDS_BLANK_LINES = re.compile(rb'(?m)(?P<extends_line>^[^#\n]*extends )(?P<extends_name>[a-zA-Z0-9_.]+|".*?")\n\n+')
WHITESPACE_ONLY_LINE = re.compile(rb"(?m)^[ \t]+$")
# A semicolon alone on its line takes the line with it.
TRAILING_SEMICOLONS = re.compile(rb"(?m)\n[ \t]*(?:;[ \t]*)+$|(?:[ \t]*;)+[ \t]*$")
EXCESS_BLANK_LINES = re.compile(rb"\n{4,}")


class Formatter:
    """Run the formatting stages over one GDScript source.

    Stages, in order: preprocess, external format, postprocess, optional
    reorder, and the safe-mode structure check.
    """

    def __init__(
        self,
        config: FormatterConfig | None = None,
        *,
        engine: FormattingEngine | None = None,
        reorderer: Reorderer | None = None,
    ) -> None:
        self.config = config or FormatterConfig()
        self.engine = engine or TopiaryEngine.from_settings(EngineSettings.from_env())
        self.reorderer = reorderer or StyleGuideReorderer()

    def format(self, source: str) -> str:
        document = SyntaxDocument.parse(source)
        reference = self.reference_fingerprint(document) if self.config.safe else None

        self.preprocess(document)
        self.run_engine(document)
        self.postprocess(document)
        if self.config.reorder_code:
            self.reorder(document)
        if reference is not None:
            self.check_structure(reference, document)
        return document.text

    def reference_fingerprint(self, document: SyntaxDocument) -> Fingerprint:
        rules = (*PIPELINE_RULES, *self.engine.normalization_rules)
        return normalize(build_fingerprint(document.root, document.source), rules, get_gdscript_language())

    def preprocess(self, document: SyntaxDocument) -> None:
        removed = document.replace_all(EXTENDS_BLANK_LINES, rb"\g<extends_line>\g<extends_name>\n", count=1)
        logger.debug("Preprocess: %d extends statement(s) tightened", removed)

    def run_engine(self, document: SyntaxDocument) -> None:
        try:
            output = self.engine.format(document.tree, document.source, self.config.indent)
        except FormatError:
            raise
        except Exception as exc:
            raise EngineError(f"Formatting engine failed: {exc}") from exc

        try:
            text = output.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EncodingError(f"Formatting engine returned invalid UTF-8: {exc}") from exc
        document.replace_text(text)

    def postprocess(self, document: SyntaxDocument) -> None:
        blanked = document.replace_all(WHITESPACE_ONLY_LINE, b"")
        semicolons = document.replace_all(TRAILING_SEMICOLONS, b"")
        collapsed = document.replace_all(EXCESS_BLANK_LINES, b"\n\n\n")
        spaced = apply_two_blank_lines(document)
        logger.debug(
            "Postprocess: %d whitespace-only line(s), %d semicolon run(s), %d blank run(s), %d spacing insertion(s)",
            blanked,
            semicolons,
            collapsed,
            spaced,
        )

    def reorder(self, document: SyntaxDocument) -> None:
        try:
            reordered = self.reorderer.reorder(document.text)
        except FormatError as exc:
            logger.warning("Code reordering failed, keeping the formatted text: %s", exc)
            warnings.warn(f"Code reordering failed: {exc}", ReorderWarning, stacklevel=2)
            return
        document.replace_text(reordered)

    def check_structure(self, reference: Fingerprint, document: SyntaxDocument) -> None:
        output = build_fingerprint(document.root, document.source)
        mismatch = first_mismatch(reference, output)
        if mismatch is not None:
            logger.debug("Safe mode rejected the output: %s", mismatch)
            raise StructureChangedError(f"Code structure has changed after formatting: {mismatch}")


def format_gdscript(
    source: str,
    config: FormatterConfig | None = None,
    *,
    engine: FormattingEngine | None = None,
    reorderer: Reorderer | None = None,
) -> str:
    """Format GDScript source text and return the formatted text.

    Raises ``FormatError`` subclasses: ``EngineError`` when the pretty-printer
    fails, ``EncodingError`` for undecodable output and
    ``StructureChangedError`` when safe mode detects a structural change.
    A failed reorder only emits ``ReorderWarning``.
    """
    return Formatter(config, engine=engine, reorderer=reorderer).format(source)
