"""Procedural line checks for code, comment and commit categories.

Catalogue entries with ``kind = "check"`` name one of the functions
registered here. Each check scans the masked document and yields raw
matches in scratch coordinates.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Iterator
from typing import TYPE_CHECKING

from tellscan.rules.base import RawMatch, Rule

if TYPE_CHECKING:
    from tellscan.positions import ScanDocument, ScanLine
    from tellscan.rules.structural import StructuralSettings

CheckFunc = Callable[["Rule", "ScanDocument", "StructuralSettings"], Iterable[RawMatch]]

_CHECKS: dict[str, CheckFunc] = {}

COMMENT_MARKERS = ("#", "//", "--")
TODO_PREFIXES = ("# todo:", "// todo:", "-- todo:", "/* todo:")
BARE_TODO_MESSAGES = frozenset(
    {
        "",
        "add error handling",
        "fix this",
        "handle this",
        "implement",
        "add tests",
        "clean up",
        "refactor",
    }
)

ANEMIC_SUFFIXES = ("Manager", "Handler", "Helper", "Util", "Utility", "Service")

PAST_TENSE_VERBS = frozenset(
    {
        "added",
        "fixed",
        "updated",
        "changed",
        "removed",
        "modified",
        "implemented",
        "refactored",
        "created",
        "deleted",
        "moved",
        "improved",
        "enhanced",
        "cleaned",
        "bumped",
        "dropped",
        "replaced",
        "resolved",
        "addressed",
        "reverted",
    }
)
VAGUE_SCOPE_WORDS = ("various", "several", "multiple", "many")

TAUTOLOGICAL_ASSERT_RE = re.compile(
    r"\b(assert\s+True\b|assert\s*\(\s*true\s*\)|assertTrue\(\s*True\s*\)"
    r"|expect\(\s*true\s*\)\.toBe\(\s*true\s*\))"
)
SWALLOWED_EXCEPTION_RE = re.compile(
    r"(except(\s+\w+(\s+as\s+\w+)?)?\s*:\s*pass\b|catch\s*(\(\s*\w*\s*\))?\s*\{\s*\})"
)


def register_check(name: str) -> Callable[[CheckFunc], CheckFunc]:
    """Register a check function under a catalogue name."""

    def decorator(func: CheckFunc) -> CheckFunc:
        if name in _CHECKS:
            raise ValueError(f"check already registered: {name}")
        _CHECKS[name] = func
        return func

    return decorator


def get_check(name: str) -> CheckFunc:
    return _CHECKS[name]


def known_checks() -> frozenset[str]:
    return frozenset(_CHECKS)


def emit(
    rule: Rule,
    line: ScanLine,
    start_col: int,
    end_col: int,
    fix: str | None = None,
) -> RawMatch:
    """Build a raw match from original columns by way of the line's boundary table."""
    table = line.table
    return RawMatch(
        rule=rule,
        line=line.number,
        start=table.to_scratch(start_col),
        end=table.to_scratch(end_col),
        fix=fix,
    )


@register_check("section-header")
def check_section_header(
    rule: Rule, document: ScanDocument, settings: StructuralSettings
) -> Iterator[RawMatch]:
    for line in document.lines:
        stripped = line.masked.strip()
        if _is_section_header(stripped):
            start = line.masked.index(stripped)
            yield emit(rule, line, start, start + len(stripped))


@register_check("bare-todo")
def check_bare_todo(
    rule: Rule, document: ScanDocument, settings: StructuralSettings
) -> Iterator[RawMatch]:
    for line in document.lines:
        stripped = line.masked.strip()
        lower = stripped.lower()
        for prefix in TODO_PREFIXES:
            if not lower.startswith(prefix):
                continue
            rest = lower[len(prefix) :].removesuffix("*/").strip()
            if rest in BARE_TODO_MESSAGES:
                start = line.masked.index(stripped)
                yield emit(rule, line, start, start + len(stripped))
            break


@register_check("anemic-suffix")
def check_anemic_suffix(
    rule: Rule, document: ScanDocument, settings: StructuralSettings
) -> Iterator[RawMatch]:
    for line in document.lines:
        for suffix in ANEMIC_SUFFIXES:
            position = _find_suffix_token(line.masked, suffix)
            if position is not None:
                yield emit(rule, line, position, position + len(suffix))


@register_check("tautological-assert")
def check_tautological_assert(
    rule: Rule, document: ScanDocument, settings: StructuralSettings
) -> Iterator[RawMatch]:
    for line in document.lines:
        for match in TAUTOLOGICAL_ASSERT_RE.finditer(line.masked):
            yield emit(rule, line, match.start(), match.end())


@register_check("swallowed-exception")
def check_swallowed_exception(
    rule: Rule, document: ScanDocument, settings: StructuralSettings
) -> Iterator[RawMatch]:
    for line in document.lines:
        match = SWALLOWED_EXCEPTION_RE.search(line.masked)
        if match:
            yield emit(rule, line, match.start(), match.end())


@register_check("commit-past-tense")
def check_commit_past_tense(
    rule: Rule, document: ScanDocument, settings: StructuralSettings
) -> Iterator[RawMatch]:
    subject = _subject_line(document)
    if subject is None:
        return
    word_start, word = _first_content_word(subject.masked)
    if word is None:
        return
    if word.lower() in PAST_TENSE_VERBS:
        yield emit(rule, subject, word_start, word_start + len(word))


@register_check("commit-vague-scope")
def check_commit_vague_scope(
    rule: Rule, document: ScanDocument, settings: StructuralSettings
) -> Iterator[RawMatch]:
    subject = _subject_line(document)
    if subject is None:
        return
    scratch = subject.scratch
    for word in VAGUE_SCOPE_WORDS:
        start = scratch.find(word)
        while start != -1:
            end = start + len(word)
            if subject.table.is_boundary(start, end):
                yield RawMatch(rule=rule, line=subject.number, start=start, end=end)
                break
            start = scratch.find(word, end)


@register_check("commit-title-case")
def check_commit_title_case(
    rule: Rule, document: ScanDocument, settings: StructuralSettings
) -> Iterator[RawMatch]:
    subject = _subject_line(document)
    if subject is None:
        return
    words = subject.masked.split()
    while words and words[0].endswith(":"):
        words.pop(0)
    capitalized = sum(1 for word in words if word[0].isupper())
    if len(words) >= 3 and capitalized >= 3:
        stripped = subject.masked.strip()
        start = subject.masked.index(stripped)
        yield emit(rule, subject, start, start + len(stripped))


@register_check("commit-body")
def check_commit_body(
    rule: Rule, document: ScanDocument, settings: StructuralSettings
) -> Iterator[RawMatch]:
    if len(document.lines) < 3:
        return
    body = document.lines[2]
    stripped = body.masked.strip()
    if stripped and not stripped.startswith("#"):
        start = body.masked.index(stripped)
        yield emit(rule, body, start, start + len(stripped))


def _is_section_header(stripped: str) -> bool:
    if not stripped.startswith(COMMENT_MARKERS):
        return False

    after_marker = stripped.lstrip("#").lstrip("/").strip()
    if stripped.startswith("--"):
        after_marker = stripped[2:].strip()

    if len(after_marker) >= 3 and not after_marker.strip("-= "):
        return True
    if after_marker.startswith(("---", "===")) or after_marker.endswith(("---", "===")):
        return True

    words = after_marker.split()
    return bool(words) and all(_is_shouted(word.rstrip(":")) for word in words)


def _is_shouted(word: str) -> bool:
    return len(word) > 1 and all(char.isupper() or char == "_" for char in word)


def _find_suffix_token(line: str, suffix: str) -> int | None:
    start = line.find(suffix)
    while start != -1:
        end = start + len(suffix)
        glued_before = start > 0 and (line[start - 1].isalnum() or line[start - 1] == "_")
        free_after = end >= len(line) or not (line[end].isalnum() or line[end] == "_")
        if glued_before and free_after:
            return start
        start = line.find(suffix, end)
    return None


def _subject_line(document: ScanDocument) -> ScanLine | None:
    if not document.lines:
        return None
    subject = document.lines[0]
    if not subject.masked.strip():
        return None
    return subject


def _first_content_word(text: str) -> tuple[int, str | None]:
    for match in re.finditer(r"\S+", text):
        word = match.group(0)
        if word.endswith(":"):
            continue
        return (match.start(), word)
    return (0, None)
