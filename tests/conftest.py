"""Shared fixtures and helpers for tests."""

from pathlib import Path

import pytest
from tree_sitter import Language, Parser, Tree

from gdscript_formatter.config import IndentPolicy
from gdscript_formatter.core.parser import get_gdscript_language, get_gdscript_parser
from gdscript_formatter.engines import PassthroughEngine

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag every test under tests/unit as "unit"
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        if rel.parts and rel.parts[0] == "unit":
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Fake formatting engines
# ---------------------------------------------------------------------------


class FixedOutputEngine:
    """Engine that ignores its input and returns canned bytes."""

    normalization_rules = ()

    def __init__(self, output: bytes) -> None:
        self.output = output
        self.calls: list[tuple[bytes, IndentPolicy]] = []

    def format(self, tree: Tree, source: bytes, indent: IndentPolicy) -> bytes:
        self.calls.append((source, indent))
        return self.output


class DroppingEngine:
    """Engine that silently deletes every line containing ``marker``."""

    normalization_rules = ()

    def __init__(self, marker: bytes) -> None:
        self.marker = marker

    def format(self, tree: Tree, source: bytes, indent: IndentPolicy) -> bytes:
        lines = source.splitlines(keepends=True)
        return b"".join(line for line in lines if self.marker not in line)


class FailingEngine:
    normalization_rules = ()

    def __init__(self, error: Exception) -> None:
        self.error = error

    def format(self, tree: Tree, source: bytes, indent: IndentPolicy) -> bytes:
        raise self.error


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def gdscript_parser() -> Parser:
    """Return a tree-sitter parser for GDScript."""
    return get_gdscript_parser()


@pytest.fixture
def gdscript_language() -> Language:
    return get_gdscript_language()


@pytest.fixture
def passthrough_engine() -> PassthroughEngine:
    return PassthroughEngine()


@pytest.fixture
def fixed_output_engine() -> type[FixedOutputEngine]:
    return FixedOutputEngine


@pytest.fixture
def dropping_engine() -> type[DroppingEngine]:
    return DroppingEngine


@pytest.fixture
def failing_engine() -> type[FailingEngine]:
    return FailingEngine
