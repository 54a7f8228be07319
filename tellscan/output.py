"""Output rendering."""

from __future__ import annotations

import difflib
import json
import unicodedata
from typing import Any

import click

from tellscan import __version__
from tellscan.rules.base import Diagnostic, Severity
from tellscan.scan import ScanResult

SEVERITY_COLORS = {
    Severity.CRITICAL: "red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "cyan",
}
DELETE_LABEL = "(delete)"
NO_NEWLINE_MARKER = "\\ No newline at end of file"


def render_clean(result: ScanResult) -> str:
    """Return the input with every eligible fix applied."""
    return result.cleaned()


def render_report(result: ScanResult, *, color: bool = False) -> str:
    """Render findings grouped by descending severity."""
    lines = [
        _style(
            f"Mode: {result.mode.value} | {len(result.diagnostics)} finding(s)",
            color,
            bold=True,
        )
    ]
    for severity in sorted(Severity, key=lambda item: item.rank, reverse=True):
        group = [item for item in result.diagnostics if item.severity is severity]
        if not group:
            continue
        lines.append("")
        lines.append(
            _style(
                f"{severity.value.upper()} ({len(group)})",
                color,
                fg=SEVERITY_COLORS[severity],
                bold=True,
            )
        )
        for diagnostic in group:
            lines.append(
                f"  {diagnostic.line}:{diagnostic.col}  [{diagnostic.rule_id}] "
                f"{diagnostic.message} ({diagnostic.citation})"
            )
            detail = f"      matched: {diagnostic.matched_text!r}"
            if diagnostic.fix is not None:
                detail += f" -> {_fix_label(diagnostic)}"
            lines.append(detail)
    return "\n".join(lines)


def render_diff(result: ScanResult) -> str:
    """Unified diff between the input and its cleaned form; empty when nothing changes."""
    cleaned = result.cleaned()
    if cleaned == result.text:
        return ""
    lines = difflib.unified_diff(
        _diff_lines(result.text),
        _diff_lines(cleaned),
        fromfile="original",
        tofile="cleaned",
        n=3,
    )
    return "".join(
        line if line.endswith("\n") else f"{line}\n{NO_NEWLINE_MARKER}\n" for line in lines
    )


def diff_note(result: ScanResult) -> str:
    """Explain an empty diff on the diagnostics stream."""
    total = len(result.diagnostics)
    if total == 0:
        return "No findings."
    return f"{total} finding(s), none auto-fixable (run with --report to see them)"


def render_dry_run(result: ScanResult, *, color: bool = False) -> str:
    """List every pending fix and every report-only finding."""
    fixable = result.fixable
    flagged = result.flagged
    lines = [_style(f"--- Auto-fixable ({len(fixable)}) ---", color, bold=True)]
    for diagnostic in fixable:
        lines.append(
            f"  line {diagnostic.line}: {diagnostic.matched_text!r} -> {_fix_label(diagnostic)}"
            f"  [{diagnostic.rule_id}] {diagnostic.message}"
        )
    lines.append(_style(f"--- Flagged (no auto-fix) ({len(flagged)}) ---", color, bold=True))
    for diagnostic in flagged:
        lines.append(
            f"  line {diagnostic.line}: {diagnostic.matched_text!r}"
            f"  [{diagnostic.rule_id}] {diagnostic.message}"
        )
    return "\n".join(lines)


def render_annotations(result: ScanResult, *, color: bool = False) -> str:
    """Render each finding under its source line with a caret at the match column."""
    source_lines = [line.removesuffix("\r") for line in result.text.split("\n")]
    width = len(str(len(source_lines)))
    blocks: list[str] = []
    for diagnostic in result.diagnostics:
        source = source_lines[diagnostic.line - 1]
        gutter = f"{diagnostic.line:>{width}} | "
        padding = _display_padding(source[: diagnostic.col])
        carets = "^" * max(1, _display_width(diagnostic.matched_text))
        note = f"{diagnostic.rule_id} ({diagnostic.severity.value}): {diagnostic.message}"
        if diagnostic.fix is not None:
            note += f" -> {_fix_label(diagnostic)}"
        blocks.append(
            "\n".join(
                [
                    f"{gutter}{source}",
                    " " * width
                    + " | "
                    + padding
                    + _style(carets, color, fg=SEVERITY_COLORS[diagnostic.severity])
                    + " "
                    + note,
                ]
            )
        )
    return "\n".join(blocks)


def render_json(result: ScanResult) -> str:
    """Render stable JSON output for CI and automation."""
    return json.dumps(build_json_payload(result), sort_keys=True)


def build_json_payload(result: ScanResult) -> dict[str, Any]:
    """Build the JSON payload; contains nothing time- or environment-dependent."""
    summary: dict[str, int] = {severity.value: 0 for severity in Severity}
    for diagnostic in result.diagnostics:
        summary[diagnostic.severity.value] += 1
    summary["total"] = len(result.diagnostics)
    summary["fixable"] = len(result.fixable)
    return {
        "version": __version__,
        "mode": result.mode.value,
        "file": result.filename,
        "findings": [_serialize_diagnostic(item) for item in result.diagnostics],
        "summary": summary,
    }


def _serialize_diagnostic(diagnostic: Diagnostic) -> dict[str, Any]:
    return {
        "rule_id": diagnostic.rule_id,
        "category": diagnostic.category.value,
        "severity": diagnostic.severity.value,
        "line": diagnostic.line,
        "column": diagnostic.col,
        "end_column": diagnostic.end_col,
        "matched": diagnostic.matched_text,
        "message": diagnostic.message,
        "citation": diagnostic.citation,
        "replacement": diagnostic.fix,
    }


def _fix_label(diagnostic: Diagnostic) -> str:
    if diagnostic.fix == "":
        return DELETE_LABEL
    return repr(diagnostic.fix)


def _style(text: str, enabled: bool, **styles: Any) -> str:
    if not enabled:
        return text
    return click.style(text, **styles)


def _diff_lines(text: str) -> list[str]:
    *lines, last = text.split("\n")
    result = [line + "\n" for line in lines]
    if last:
        result.append(last)
    return result


def _char_width(char: str) -> int:
    if unicodedata.combining(char):
        return 0
    return 2 if unicodedata.east_asian_width(char) in ("W", "F") else 1


def _display_width(text: str) -> int:
    return sum(_char_width(char) for char in text)


def _display_padding(prefix: str) -> str:
    return "".join("\t" if char == "\t" else " " * _char_width(char) for char in prefix)
