from tree_sitter import Tree

from gdscript_formatter.config import FormatterConfig, IndentPolicy
from gdscript_formatter.core.batch import FormatOutcome, format_sources
from gdscript_formatter.engines import PassthroughEngine
from gdscript_formatter.errors import EngineError


class _PickyEngine:
    """Fails on sources that contain ``boom``."""

    normalization_rules = ()

    def format(self, tree: Tree, source: bytes, indent: IndentPolicy) -> bytes:
        if b"boom" in source:
            raise EngineError("refusing to format boom")
        return source


def test_outcomes_keep_input_order() -> None:
    sources = [f"var v{index} = {index};\n" for index in range(12)]

    outcomes = format_sources(sources, engine_factory=PassthroughEngine, max_workers=4)

    assert [outcome.index for outcome in outcomes] == list(range(12))
    assert [outcome.formatted for outcome in outcomes] == [f"var v{index} = {index}\n" for index in range(12)]
    assert all(outcome.changed for outcome in outcomes)


def test_failures_are_reported_per_source() -> None:
    sources = ["var a = 1\n", "var boom = 2\n", "var c = 3\n"]

    outcomes = format_sources(sources, FormatterConfig(), engine_factory=_PickyEngine, max_workers=2)

    assert outcomes[0].formatted == "var a = 1\n"
    assert outcomes[1].formatted is None
    assert isinstance(outcomes[1].error, EngineError)
    assert outcomes[2].formatted == "var c = 3\n"


def test_unchanged_source_is_not_marked_changed() -> None:
    outcome = FormatOutcome(index=0, source="var a = 1\n", formatted="var a = 1\n")

    assert not outcome.changed
    assert not FormatOutcome(index=0, source="x", error=EngineError("failed")).changed


def test_empty_input_returns_no_outcomes() -> None:
    assert format_sources([], engine_factory=PassthroughEngine) == []
