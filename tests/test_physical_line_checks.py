import pytest

from py_style_check import (
    Diagnostic,
    check_maximum_line_length,
    check_tabs_obsolete,
    check_tabs_or_spaces,
    check_trailing_blank_lines,
    check_trailing_whitespace,
)


def test_maximum_line_length_reports_at_limit_column():
    assert check_maximum_line_length("Hello world", 10) == [
        Diagnostic("E501", "line too long (11 > 10 characters)", 10)
    ]


def test_maximum_line_length_allows_line_at_limit():
    assert check_maximum_line_length("Hello world", 11) == []
    assert check_maximum_line_length("x" * 120) == []


def test_maximum_line_length_counts_code_points_not_bytes():
    assert check_maximum_line_length("ü" * 120) == []

    found = check_maximum_line_length("ü" * 121)
    assert [(d.code, d.column) for d in found] == [("E501", 120)]
    assert "121 > 120" in found[0].message


def test_tabs_or_spaces_flags_tab_when_spaces_expected():
    assert check_tabs_or_spaces("\tHello world", " ") == [
        Diagnostic("E101", "indentation contains mixed spaces and tabs", 0)
    ]


def test_tabs_or_spaces_flags_space_when_tabs_expected():
    assert [d.column for d in check_tabs_or_spaces(" Hello world", "\t")] == [0]


def test_tabs_or_spaces_reports_first_foreign_character():
    assert [d.column for d in check_tabs_or_spaces("    \tx = 1", " ")] == [4]
    assert [d.column for d in check_tabs_or_spaces("\t\t  x = 1", "\t")] == [2]


@pytest.mark.parametrize("line", ["", "x = 1", " Hello world", "        return"])
def test_tabs_or_spaces_accepts_consistent_indentation(line):
    assert check_tabs_or_spaces(line, " ") == []


def test_tabs_obsolete_reports_first_tab_in_indentation():
    assert check_tabs_obsolete("\tHello world") == [
        Diagnostic("W191", "indentation contains tabs", 0)
    ]
    assert [d.column for d in check_tabs_obsolete("  \tx")] == [2]


def test_tabs_obsolete_ignores_tabs_after_indentation():
    assert check_tabs_obsolete("Hello\tworld") == []
    assert check_tabs_obsolete("") == []


def test_trailing_whitespace_on_code_line():
    assert check_trailing_whitespace("Hello world ") == [
        Diagnostic("W291", "trailing whitespace", 11)
    ]
    assert [d.column for d in check_trailing_whitespace("foo ")] == [3]


def test_trailing_whitespace_on_blank_line():
    assert check_trailing_whitespace(" ") == [
        Diagnostic("W293", "blank line contains whitespace", 0)
    ]
    assert [d.code for d in check_trailing_whitespace("\t  ")] == ["W293"]


def test_trailing_whitespace_column_uses_code_points():
    assert [d.column for d in check_trailing_whitespace("naïve = 1\t")] == [9]


@pytest.mark.parametrize("line", ["", "foo", "Hello world"])
def test_trailing_whitespace_clean_lines(line):
    assert check_trailing_whitespace(line) == []


def test_trailing_blank_lines_reports_missing_newline_on_last_line():
    assert check_trailing_blank_lines("Hello world", 10, 10) == [
        Diagnostic("W292", "no newline at end of file", 11)
    ]


def test_trailing_blank_lines_reports_blank_last_line():
    assert check_trailing_blank_lines("", 10, 10) == [
        Diagnostic("W391", "blank line at end of file", 0)
    ]
    assert [d.code for d in check_trailing_blank_lines("   ", 3, 3)] == ["W391"]


def test_trailing_blank_lines_ignores_last_line_with_trailing_whitespace():
    assert check_trailing_blank_lines("x = 1 ", 4, 4) == []


def test_trailing_blank_lines_only_checks_last_line():
    assert check_trailing_blank_lines("", 3, 10) == []
    assert check_trailing_blank_lines("Hello world", 9, 10) == []
