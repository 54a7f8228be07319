"""Tests for report, diff, dry-run, annotation and JSON rendering."""

from __future__ import annotations

import json

from tellscan import __version__
from tellscan.output import (
    build_json_payload,
    diff_note,
    render_annotations,
    render_diff,
    render_dry_run,
    render_json,
    render_report,
)
from tellscan.rules.base import Mode
from tests.helpers_scan import scan

SAMPLE = "Certainly! We utilize the realm.\nPlain line.\n"


def test_report_groups_by_severity() -> None:
    report = render_report(scan(SAMPLE))
    lines = report.splitlines()
    assert lines[0] == "Mode: text | 3 finding(s)"
    assert "CRITICAL (1)" in lines
    assert "HIGH (2)" in lines
    assert lines.index("CRITICAL (1)") < lines.index("HIGH (2)")
    assert "  1:0  [llm-tells.certainly] " in report
    assert "matched: 'Certainly!' -> (delete)" in report
    assert "matched: 'utilize' -> 'use'" in report
    assert "matched: 'realm'\n" in report + "\n"


def test_report_without_findings() -> None:
    assert render_report(scan("Plain words.")) == "Mode: text | 0 finding(s)"


def test_report_color_uses_ansi_only_when_enabled() -> None:
    assert "\x1b[" not in render_report(scan(SAMPLE))
    assert "\x1b[" in render_report(scan(SAMPLE), color=True)


def test_diff_contains_only_fixable_changes() -> None:
    text = "We utilize this.\nThe realm is big.\n"
    patch = render_diff(scan(text))
    assert patch.startswith("--- original\n+++ cleaned\n")
    assert "-We utilize this.\n" in patch
    assert "+We use this.\n" in patch
    assert " The realm is big.\n" in patch
    assert "+The realm" not in patch


def test_diff_marks_missing_final_newline() -> None:
    patch = render_diff(scan("We utilize it."))
    assert patch.splitlines()[2:] == [
        "@@ -1 +1 @@",
        "-We utilize it.",
        "\\ No newline at end of file",
        "+We use it.",
        "\\ No newline at end of file",
    ]

    context = render_diff(scan("We utilize this.\nThe realm is big."))
    assert context.endswith(" The realm is big.\n\\ No newline at end of file\n")
    assert context.count("No newline") == 1


def test_empty_diff_and_note() -> None:
    flagged_only = scan("The realm is big.")
    assert render_diff(flagged_only) == ""
    assert diff_note(flagged_only) == (
        "1 finding(s), none auto-fixable (run with --report to see them)"
    )
    assert diff_note(scan("Plain words.")) == "No findings."


def test_dry_run_lists_both_groups() -> None:
    listing = render_dry_run(scan(SAMPLE))
    assert "--- Auto-fixable (2) ---" in listing
    assert "--- Flagged (no auto-fix) (1) ---" in listing
    assert "  line 1: 'utilize' -> 'use'  [text.utilize]" in listing


def test_annotations_place_carets_under_match() -> None:
    rendered = render_annotations(scan("We utilize it."))
    assert rendered.splitlines() == [
        "1 | We utilize it.",
        "  |    ^^^^^^^ text.utilize (high): "
        + scan("We utilize it.").diagnostics[0].message
        + " -> 'use'",
    ]


def test_annotations_pad_wide_characters() -> None:
    rendered = render_annotations(scan("日本 utilize", mode=Mode.TEXT))
    caret_line = rendered.splitlines()[1]
    assert caret_line.startswith("  |      ^^^^^^^ ")


def test_json_payload_is_stable_and_complete() -> None:
    result = scan(SAMPLE)
    payload = json.loads(render_json(result))
    assert payload == build_json_payload(result)
    assert payload["version"] == __version__
    assert payload["mode"] == "text"
    assert payload["file"] is None
    assert payload["summary"] == {
        "critical": 1,
        "high": 2,
        "medium": 0,
        "low": 0,
        "total": 3,
        "fixable": 2,
    }
    first = payload["findings"][0]
    assert first == {
        "rule_id": "llm-tells.certainly",
        "category": "llm-tells",
        "severity": "critical",
        "line": 1,
        "column": 0,
        "end_column": 10,
        "matched": "Certainly!",
        "message": first["message"],
        "citation": first["citation"],
        "replacement": "",
    }
    assert render_json(result) == render_json(scan(SAMPLE))
