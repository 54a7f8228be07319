"""Deterministic application of auto-fixes."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable

from tellscan.errors import PositionError
from tellscan.rules.base import Diagnostic

logger = logging.getLogger(__name__)


def apply_fixes(text: str, diagnostics: Iterable[Diagnostic]) -> str:
    """Return ``text`` with every fixable diagnostic applied.

    Fixes run right-to-left within a line so earlier columns stay valid, and
    replacement text is never scanned again. A fix overlapping one already
    applied to its right is skipped. Lines emptied by deletions are dropped;
    all other line endings are kept as they were.
    """
    by_line: defaultdict[int, list[Diagnostic]] = defaultdict(list)
    for diagnostic in diagnostics:
        if diagnostic.fix is not None:
            by_line[diagnostic.line].append(diagnostic)
    if not by_line:
        return text

    lines = text.split("\n")
    dropped: set[int] = set()
    for number, fixes in by_line.items():
        index = number - 1
        if not 0 <= index < len(lines):
            raise PositionError(f"fix targets line {number}, input has {len(lines)} line(s)")
        raw = lines[index]
        body, ending = (raw[:-1], "\r") if raw.endswith("\r") else (raw, "")
        fixed = fix_line(body, fixes)
        if body.strip() and not fixed.strip():
            dropped.add(index)
        lines[index] = fixed + ending

    return "\n".join(line for index, line in enumerate(lines) if index not in dropped)


def fix_line(line: str, fixes: Iterable[Diagnostic]) -> str:
    """Apply fixes to a single line (no line terminator)."""
    limit = len(line)
    for diagnostic in sorted(fixes, key=lambda item: (item.col, item.end_col), reverse=True):
        if diagnostic.fix is None:
            continue
        if diagnostic.end_col > limit:
            logger.debug(
                "skipping overlapping fix %s at %d:%d",
                diagnostic.rule_id,
                diagnostic.line,
                diagnostic.col,
            )
            continue
        current = line[diagnostic.col : diagnostic.end_col]
        if current != diagnostic.matched_text:
            raise PositionError(
                f"line {diagnostic.line} col {diagnostic.col}: expected "
                f"{diagnostic.matched_text!r}, found {current!r}"
            )
        replacement = apply_case(diagnostic.matched_text, diagnostic.fix)
        start, end = diagnostic.col, diagnostic.end_col
        if not replacement:
            start, end = _deletion_extent(line, start, end, limit)
        line = line[:start] + replacement + line[end:]
        limit = start
    return line


def apply_case(original: str, replacement: str) -> str:
    """Carry the original's capitalisation over to the replacement."""
    if not original or not replacement:
        return replacement
    letters = [char for char in original if char.isalpha()]
    if len(letters) > 1 and all(char.isupper() for char in letters):
        return replacement.upper()
    if original[0].isupper():
        return replacement[0].upper() + replacement[1:]
    return replacement


def _deletion_extent(line: str, start: int, end: int, limit: int) -> tuple[int, int]:
    trailing = end
    while trailing < limit and line[trailing].isspace():
        trailing += 1
    if trailing > end:
        return (start, trailing)
    leading = start
    while leading > 0 and line[leading - 1].isspace():
        leading -= 1
    return (leading, end)
