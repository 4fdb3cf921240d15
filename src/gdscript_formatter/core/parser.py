from functools import cache
from pathlib import Path

from tree_sitter import Language, Node, Parser, Query, Tree
from tree_sitter_language_pack import get_language

from gdscript_formatter.errors import ParseFailureError

GDSCRIPT = "gdscript"

_QUERIES_DIR = Path(__file__).parent.parent / "queries"


@cache
def get_gdscript_language() -> Language:
    return get_language(GDSCRIPT)


def get_gdscript_parser() -> Parser:
    """Return a fresh parser. Parsers are not shared between threads."""
    return Parser(get_gdscript_language())


def parse_source(source: bytes, previous_tree: Tree | None = None, parser: Parser | None = None) -> Tree:
    """Parse GDScript, reusing ``previous_tree`` for an incremental parse.

    Syntax errors never fail: the grammar yields ERROR nodes instead.
    """
    parser = parser or get_gdscript_parser()
    if previous_tree is None:
        tree = parser.parse(source)
    else:
        tree = parser.parse(source, old_tree=previous_tree)
    if tree is None:
        raise ParseFailureError("tree-sitter returned no tree for GDScript source")
    return tree


@cache
def load_query(name: str) -> Query:
    query_path = _QUERIES_DIR / f"{GDSCRIPT}_{name}.scm"
    if not query_path.exists():
        raise FileNotFoundError(f"Query file not found: {query_path}")
    query_text = query_path.read_text(encoding="utf-8")
    return Query(get_gdscript_language(), query_text)


def node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")
