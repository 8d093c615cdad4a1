import pytest

from microscript.blocks import block_body, scan_block, split_statements, split_top_level
from microscript.errors import SyntaxFault


def test_scan_block_matches_nested_braces():
    lines = [
        "while (x) {",
        "    if (y) { a(); }",
        '    s = "}";',
        "    // }",
        "}",
        "after();",
    ]
    span = scan_block(lines, 0)
    assert (span.open_line, span.close_line, span.close_col) == (0, 4, 0)
    assert block_body(lines, span) == lines[1:4]


def test_block_comments_are_skipped():
    lines = ["if (x) { /* } */", "  a();", "}"]
    span = scan_block(lines, 0)
    assert span.close_line == 2


def test_single_line_block():
    lines = ["if (x) { a(); b(); } else { c(); }"]
    span = scan_block(lines, 0)
    assert span.single_line
    assert block_body(lines, span) == [" a(); b(); "]


def test_missing_brace_is_a_fault():
    with pytest.raises(SyntaxFault):
        scan_block(["if (x) {", "a();"], 0)
    with pytest.raises(SyntaxFault):
        scan_block(["a();"], 0)


def test_split_statements_after_nested_block():
    parts = split_statements("if (v < 0) { return -1; } return 1;")
    assert parts == ["if (v < 0) { return -1; }", "return 1"]
    assert split_statements("if (a) { x(); } else { y(); } z()") == ["if (a) { x(); } else { y(); }", "z()"]


def test_split_top_level_ignores_nested_separators():
    assert split_top_level('f(a; b); "x;y"; c', ";") == ["f(a; b)", ' "x;y"', " c"]
