"""Tests for procedural code and commit checks."""

from __future__ import annotations

import pytest

from tellscan.rules.base import Category, Mode
from tellscan.rules.checks import known_checks
from tests.helpers_scan import rule_ids, scan


def test_all_catalogue_checks_are_registered() -> None:
    assert {
        "section-header",
        "bare-todo",
        "anemic-suffix",
        "tautological-assert",
        "swallowed-exception",
        "commit-past-tense",
        "commit-vague-scope",
        "commit-title-case",
        "commit-body",
        "connector-density",
        "uniform-sentences",
        "em-dash",
    } <= known_checks()


@pytest.mark.parametrize(
    "line",
    ["# ===== SETUP =====", "# HELPERS", "// ----------", "# --- Parsing ---", "-- CONFIG:"],
)
def test_section_headers_are_flagged(line: str) -> None:
    result = scan(line + "\nx = 1\n", mode=Mode.CODE, categories=(Category.COMMENTS,))
    assert rule_ids(result.diagnostics) == ["comments.section-header"]
    assert result.diagnostics[0].matched_text == line


@pytest.mark.parametrize("line", ["# compute totals", "#!/usr/bin/env python", "# A"])
def test_ordinary_comments_are_not_headers(line: str) -> None:
    result = scan(line + "\n", mode=Mode.CODE, categories=(Category.COMMENTS,))
    assert result.diagnostics == []


def test_bare_todo_is_flagged_but_specific_todo_is_not() -> None:
    text = "# TODO: fix this\n# TODO: handle CRLF input in the parser\n    // todo:\n"
    result = scan(text, mode=Mode.CODE, categories=(Category.COMMENTS,))
    assert [(item.rule_id, item.line) for item in result.diagnostics] == [
        ("comments.bare-todo", 1),
        ("comments.bare-todo", 3),
    ]
    assert result.diagnostics[1].col == 4


def test_anemic_suffix_on_glued_names_only() -> None:
    text = "class UserManager:\n    helper = Helper()\nDataHandlerFactory()\n"
    result = scan(text, mode=Mode.CODE, categories=(Category.NAMING,))
    assert [(item.line, item.matched_text) for item in result.diagnostics] == [(1, "Manager")]


def test_tautological_assert() -> None:
    text = "def test_x():\n    assert True\n    assert result == 3\n"
    result = scan(text, mode=Mode.CODE, categories=(Category.TESTS,))
    assert [(item.line, item.matched_text) for item in result.diagnostics] == [
        (2, "assert True")
    ]


@pytest.mark.parametrize(
    "line",
    ["try: run()\nexcept Exception: pass", "try { run(); } catch (e) {}"],
)
def test_swallowed_exception(line: str) -> None:
    result = scan(line + "\n", mode=Mode.CODE, categories=(Category.ERRORS,))
    assert rule_ids(result.diagnostics) == ["errors.swallowed-exception"]


def test_past_tense_subject_is_report_only() -> None:
    result = scan("Updated various files", mode=Mode.COMMIT)
    assert rule_ids(result.diagnostics) == ["commits.past-tense", "commits.vague-scope"]
    assert result.diagnostics[0].matched_text == "Updated"
    assert result.diagnostics[0].fix is None
    assert result.fixable == []
    assert result.cleaned() == "Updated various files"


def test_past_tense_after_conventional_prefix() -> None:
    result = scan("fix(core): added retries", mode=Mode.COMMIT)
    assert rule_ids(result.diagnostics) == ["commits.past-tense"]
    assert result.diagnostics[0].matched_text == "added"
    assert result.cleaned() == "fix(core): added retries"


def test_title_case_subject() -> None:
    result = scan("Add New Login Page", mode=Mode.COMMIT)
    assert rule_ids(result.diagnostics) == ["commits.title-case"]
    assert scan("feat: Add login page", mode=Mode.COMMIT).diagnostics == []


def test_body_on_third_line_is_flagged_unless_comment() -> None:
    flagged = scan("Add parser\n\nThis explains the change.", mode=Mode.COMMIT)
    assert [(item.rule_id, item.line) for item in flagged.diagnostics] == [("commits.body", 3)]
    assert scan("Add parser\n\n# Please enter the message", mode=Mode.COMMIT).diagnostics == []


def test_commit_checks_only_read_the_subject_line() -> None:
    result = scan("Add parser\n\nUpdated various bits later.", mode=Mode.COMMIT)
    assert "commits.past-tense" not in rule_ids(result.diagnostics)
    assert "commits.vague-scope" not in rule_ids(result.diagnostics)
