import random

import pytest

from gdscript_formatter.core.document import SyntaxDocument
from gdscript_formatter.core.spacing import apply_two_blank_lines, find_insertion_points


def _space(source: str) -> str:
    document = SyntaxDocument.parse(source)
    apply_two_blank_lines(document)
    return document.text


class TestTwoBlankLines:
    """Tests for blank lines before definitions."""

    def test_consecutive_functions(self) -> None:
        source = "func a():\n\tpass\nfunc b():\n\tpass\n"

        assert _space(source) == "func a():\n\tpass\n\n\nfunc b():\n\tpass\n"

    def test_variable_before_function(self) -> None:
        assert _space("var x = 1\nfunc f():\n\tpass\n") == "var x = 1\n\n\nfunc f():\n\tpass\n"

    def test_member_after_function(self) -> None:
        assert _space("func f():\n\tpass\nvar x = 1\n") == "func f():\n\tpass\n\n\nvar x = 1\n"

    def test_consecutive_classes(self) -> None:
        source = "class A:\n\tvar x = 1\nclass B:\n\tvar y = 2\n"

        assert _space(source) == "class A:\n\tvar x = 1\n\n\nclass B:\n\tvar y = 2\n"

    def test_variables_are_left_alone(self) -> None:
        source = "var a = 1\nvar b = 2\nsignal moved\n"

        assert _space(source) == source

    @pytest.mark.parametrize(
        "existing",
        ["", "\n", "\n\n"],
        ids=["none", "one", "two"],
    )
    def test_only_missing_blank_lines_are_added(self, existing: str) -> None:
        source = f"func a():\n\tpass\n{existing}func b():\n\tpass\n"

        assert _space(source) == "func a():\n\tpass\n\n\nfunc b():\n\tpass\n"


class TestAttachedComments:
    """Tests for comments between two declarations."""

    def test_doc_comment_moves_with_the_function(self) -> None:
        source = "var x = 1\n## Does things.\nfunc f():\n\tpass\n"

        assert _space(source) == "var x = 1\n\n\n## Does things.\nfunc f():\n\tpass\n"

    def test_multi_line_doc_block_moves_as_a_whole(self) -> None:
        source = "var x = 1\n## First line.\n## Second line.\nfunc f():\n\tpass\n"

        assert _space(source) == "var x = 1\n\n\n## First line.\n## Second line.\nfunc f():\n\tpass\n"

    def test_annotation_moves_with_the_function(self) -> None:
        source = "var x = 1\n@rpc\nfunc f():\n\tpass\n"

        assert _space(source) == "var x = 1\n\n\n@rpc\nfunc f():\n\tpass\n"

    def test_detached_comment_gets_the_blank_lines_above_it(self) -> None:
        source = "var x = 1\n# Section\n\nfunc f():\n\tpass\n"

        assert _space(source) == "var x = 1\n\n\n# Section\n\nfunc f():\n\tpass\n"

    def test_doc_comment_moves_with_a_member_after_a_function(self) -> None:
        source = "func g():\n\tpass\n## Vertical speed.\nvar y = 2\n"

        assert _space(source) == "func g():\n\tpass\n\n\n## Vertical speed.\nvar y = 2\n"

    def test_annotation_moves_with_a_member_after_a_function(self) -> None:
        source = "func g():\n\tpass\n@export\nvar y = 2\n"

        assert _space(source) == "func g():\n\tpass\n\n\n@export\nvar y = 2\n"


class TestLineEndings:
    """Tests for buffers with CRLF line endings."""

    def test_existing_crlf_blank_lines_are_counted(self) -> None:
        source = "func a():\r\n\tpass\r\n\r\n\r\nfunc b():\r\n\tpass\r\n"

        assert _space(source) == source

    def test_inserted_blank_lines_use_crlf(self) -> None:
        source = "func a():\r\n\tpass\r\nfunc b():\r\n\tpass\r\n"

        assert _space(source) == "func a():\r\n\tpass\r\n\r\n\r\nfunc b():\r\n\tpass\r\n"

    def test_missing_crlf_blank_line_is_completed(self) -> None:
        source = "func a():\r\n\tpass\r\n\r\nfunc b():\r\n\tpass\r\n"

        assert _space(source) == "func a():\r\n\tpass\r\n\r\n\r\nfunc b():\r\n\tpass\r\n"


class TestIdempotence:
    """Tests that a second pass is a no-op."""

    def test_second_pass_inserts_nothing(self) -> None:
        document = SyntaxDocument.parse("var x = 1\nfunc a():\n\tpass\nfunc b():\n\tpass\nvar y = 2\n")
        apply_two_blank_lines(document)
        first = document.text

        assert apply_two_blank_lines(document) == 0
        assert document.text == first

    def test_insertion_points_are_sorted_descending(self) -> None:
        document = SyntaxDocument.parse("func a():\n\tpass\nfunc b():\n\tpass\nfunc c():\n\tpass\n")

        offsets = [insertion.offset for insertion in find_insertion_points(document)]

        assert len(offsets) == 2
        assert offsets == sorted(offsets, reverse=True)

    def test_shuffled_insertion_order_gives_the_same_text(self) -> None:
        source = "var x = 1\nfunc a():\n\tpass\nfunc b():\n\tpass\nclass C:\n\tvar z = 3\nvar y = 2\n"
        expected = _space(source)
        document = SyntaxDocument.parse(source)
        insertions = [(insertion.offset, insertion.text) for insertion in find_insertion_points(document)]

        random.Random(7).shuffle(insertions)
        document.insert_many(insertions)

        assert document.text == expected
