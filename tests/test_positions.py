"""Tests for scratch-offset mapping and document construction."""

from __future__ import annotations

import pytest

from tellscan.errors import PositionError
from tellscan.positions import CharBoundaryTable, ScanDocument, is_word_char, resolve_matches
from tellscan.rules.base import Category, RawMatch, Rule, Severity

RULE = Rule(
    rule_id="text.sample",
    category=Category.TEXT,
    severity=Severity.HIGH,
    kind="word",
    pattern="strasse",
    message="sample",
    citation="tests",
)


def test_sharp_s_expands_in_scratch() -> None:
    table = CharBoundaryTable("Straße x")
    assert table.scratch == "strasse x"
    assert table.to_char(0) == 0
    assert table.to_char(6) == 5
    assert table.to_char(7) == 6
    assert table.to_scratch(5) == 6


def test_offset_inside_expanded_char_is_rejected() -> None:
    table = CharBoundaryTable("Straße")
    with pytest.raises(PositionError):
        table.to_char(5)


def test_dotted_capital_i_expands_in_scratch() -> None:
    table = CharBoundaryTable("İx")
    assert len(table.scratch) == 3
    assert table.to_char(2) == 1
    assert table.to_char(3) == 2


def test_to_scratch_rejects_out_of_range_column() -> None:
    with pytest.raises(PositionError):
        CharBoundaryTable("ab").to_scratch(3)


@pytest.mark.parametrize(
    ("char", "expected"),
    [("a", True), ("_", True), ("7", True), ("\u0436", True), ("\u0301", True), ("-", False)],
)
def test_is_word_char(char: str, expected: bool) -> None:
    assert is_word_char(char) is expected


def test_boundary_check_treats_combining_mark_as_word() -> None:
    table = CharBoundaryTable("realm\u0301 x")
    assert not table.is_boundary(0, 5)
    assert CharBoundaryTable("realm, x").is_boundary(0, 5)


def test_document_strips_carriage_returns() -> None:
    document = ScanDocument.from_text("one\r\ntwo\r\n")
    assert [line.text for line in document.lines] == ["one", "two", ""]
    assert document.line(2).number == 2


def test_blank_and_protected_lines_are_blank() -> None:
    document = ScanDocument.from_text("text\n   \n`code`\n")
    assert [line.is_blank for line in document.lines] == [False, True, True, True]


def test_resolve_matches_maps_columns_and_deduplicates() -> None:
    document = ScanDocument.from_text("Die Straße ist lang")
    match = RawMatch(rule=RULE, line=1, start=4, end=11)
    diagnostics = resolve_matches(document, [match, match])
    assert len(diagnostics) == 1
    diagnostic = diagnostics[0]
    assert (diagnostic.col, diagnostic.end_col) == (4, 10)
    assert diagnostic.matched_text == "Straße"


def test_resolve_matches_sorts_by_line_col_and_id() -> None:
    document = ScanDocument.from_text("aa bb\ncc")
    other = Rule(
        rule_id="text.another",
        category=Category.TEXT,
        severity=Severity.LOW,
        kind="word",
        pattern="aa",
        message="m",
        citation="c",
    )
    diagnostics = resolve_matches(
        document,
        [
            RawMatch(rule=RULE, line=2, start=0, end=2),
            RawMatch(rule=RULE, line=1, start=3, end=5),
            RawMatch(rule=RULE, line=1, start=0, end=2),
            RawMatch(rule=other, line=1, start=0, end=2),
        ],
    )
    assert [(item.line, item.col, item.rule_id) for item in diagnostics] == [
        (1, 0, "text.another"),
        (1, 0, "text.sample"),
        (1, 3, "text.sample"),
        (2, 0, "text.sample"),
    ]
