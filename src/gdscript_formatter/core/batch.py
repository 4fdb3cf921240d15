import concurrent.futures
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from gdscript_formatter.config import FormatterConfig
from gdscript_formatter.core.pipeline import Formatter
from gdscript_formatter.core.ports.engine import FormattingEngine
from gdscript_formatter.errors import FormatError

logger = logging.getLogger(__name__)

EngineFactory = Callable[[], FormattingEngine]


@dataclass(frozen=True)
class FormatOutcome:
    index: int
    source: str
    formatted: str | None = None
    error: FormatError | None = None

    @property
    def changed(self) -> bool:
        return self.formatted is not None and self.formatted != self.source


def _format_one(index: int, source: str, config: FormatterConfig, engine_factory: EngineFactory | None) -> FormatOutcome:
    try:
        engine = engine_factory() if engine_factory is not None else None
        formatted = Formatter(config, engine=engine).format(source)
    except FormatError as exc:
        logger.debug("Source #%d failed: %s", index, exc)
        return FormatOutcome(index=index, source=source, error=exc)
    return FormatOutcome(index=index, source=source, formatted=formatted)


def format_sources(
    sources: Sequence[str],
    config: FormatterConfig | None = None,
    *,
    engine_factory: EngineFactory | None = None,
    max_workers: int | None = None,
) -> list[FormatOutcome]:
    """Format several sources in parallel.

    Every worker gets its own document, parser and engine instance. Outcomes
    come back in input order; a failing source does not stop the others.
    """
    config = config or FormatterConfig()
    outcomes: list[FormatOutcome] = []
    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            executor.submit(_format_one, index, source, config, engine_factory) for index, source in enumerate(sources)
        ]
        for future in concurrent.futures.as_completed(futures):
            outcomes.append(future.result())
    outcomes.sort(key=lambda outcome: outcome.index)
    return outcomes
