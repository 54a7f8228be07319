"""Tests for paragraph-scope checks."""

from __future__ import annotations

from tellscan.positions import ScanDocument
from tellscan.rules.base import Mode
from tellscan.rules.structural import find_connectors, sentence_lengths, split_paragraphs
from tests.helpers_scan import rule_ids, scan

UNIFORM = (
    "The cat sat on the warm mat. The dog ran to the big park. "
    "The bird flew over the tall tree. The fish swam in the cold lake."
)


def test_split_paragraphs_on_blank_and_fenced_lines() -> None:
    document = ScanDocument.from_text("a\nb\n\nc\n```\ncode\n```\nd")
    paragraphs = split_paragraphs(document)
    assert [[line.number for line in paragraph] for paragraph in paragraphs] == [
        [1, 2],
        [4],
        [8],
    ]


def test_find_connectors_needs_whole_words() -> None:
    document = ScanDocument.from_text("Moreover, in addition to this, moreoverly not.")
    hits = find_connectors(document.lines[0])
    assert hits == [(0, 8), (10, 21)]


def test_sentence_lengths() -> None:
    document = ScanDocument.from_text("One two three. Four five!\nSix?")
    assert sentence_lengths(document.lines) == [3, 2, 1]


def test_three_connectors_in_paragraph_are_flagged_once() -> None:
    text = "Moreover, the plan works. Furthermore, it scales. Additionally, it is cheap."
    result = scan(text, mode=Mode.TEXT)
    density = [item for item in result.diagnostics if item.rule_id == "text.connector-density"]
    assert len(density) == 1
    assert (density[0].line, density[0].col, density[0].matched_text) == (1, 0, "Moreover")
    assert density[0].fix is None


def test_two_connectors_are_allowed() -> None:
    result = scan("Moreover, it works. Furthermore, it scales.", mode=Mode.TEXT)
    assert "text.connector-density" not in rule_ids(result.diagnostics)


def test_connectors_are_counted_per_paragraph() -> None:
    text = "Moreover, a.\nFurthermore, b.\n\nAdditionally, c."
    result = scan(text, mode=Mode.TEXT)
    assert "text.connector-density" not in rule_ids(result.diagnostics)


def test_uniform_sentence_lengths_are_flagged() -> None:
    result = scan(UNIFORM, mode=Mode.TEXT)
    assert rule_ids(result.diagnostics) == ["text.uniform-sentences"]
    finding = result.diagnostics[0]
    assert (finding.line, finding.col, finding.end_col) == (1, 0, len(UNIFORM))


def test_varied_sentence_lengths_pass() -> None:
    text = (
        "Short one. This sentence is quite a bit longer than the first one was. "
        "Tiny. Another fairly long sentence rounds out this small paragraph here."
    )
    result = scan(text, mode=Mode.TEXT)
    assert "text.uniform-sentences" not in rule_ids(result.diagnostics)


def test_three_sentences_are_too_few_to_judge() -> None:
    text = "The cat sat on the warm mat. The dog ran to the big park. The bird flew over it."
    result = scan(text, mode=Mode.TEXT)
    assert "text.uniform-sentences" not in rule_ids(result.diagnostics)


def test_first_em_dash_is_free_and_second_is_fixable() -> None:
    text = "First \u2014 one. Second \u2014 two."
    result = scan(text, mode=Mode.TEXT)
    assert rule_ids(result.diagnostics) == ["text.em-dash"]
    finding = result.diagnostics[0]
    assert (finding.col, finding.end_col, finding.fix) == (19, 22, ", ")
    assert result.cleaned() == "First \u2014 one. Second, two."


def test_cleaned_em_dash_text_is_stable() -> None:
    cleaned = scan("First \u2014 one. Second \u2014 two.", mode=Mode.TEXT).cleaned()
    assert scan(cleaned, mode=Mode.TEXT).diagnostics == []


def test_long_clause_after_dash_is_report_only() -> None:
    text = (
        "A \u2014 b. C \u2014 this clause has far too many words to collapse into a comma here."
    )
    result = scan(text, mode=Mode.TEXT)
    assert rule_ids(result.diagnostics) == ["text.em-dash"]
    assert result.diagnostics[0].fix is None
    assert result.cleaned() == text


def test_em_dashes_in_separate_paragraphs_are_free() -> None:
    text = "One \u2014 two.\n\nThree \u2014 four."
    assert scan(text, mode=Mode.TEXT).diagnostics == []
