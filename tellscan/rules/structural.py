"""Paragraph-scope checks: connector density, em-dash frequency, sentence uniformity."""

from __future__ import annotations

import re
import statistics
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tellscan.rules.base import RawMatch, Rule
from tellscan.rules.checks import emit, register_check

if TYPE_CHECKING:
    from tellscan.positions import ScanDocument, ScanLine

CONNECTORS = (
    "moreover",
    "furthermore",
    "additionally",
    "consequently",
    "subsequently",
    "nevertheless",
    "nonetheless",
    "in addition",
    "as a result",
    "on the other hand",
    "with that said",
    "that being said",
    "to summarize",
    "in summary",
    "in conclusion",
)

EM_DASH = "\u2014"
EM_DASH_FIX = ", "
SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
CLAUSE_END_RE = re.compile(r"[.!?;:]")


@dataclass(frozen=True, slots=True)
class StructuralSettings:
    """Thresholds for paragraph-scope checks."""

    max_connectors: int = 2
    min_sentences: int = 4
    uniformity_variance: float = 9.0
    min_mean_words: float = 5.0
    em_dash_fix_max_words: int = 8


def split_paragraphs(document: ScanDocument) -> list[list[ScanLine]]:
    """Group lines into paragraphs separated by blank or fully protected lines."""
    paragraphs: list[list[ScanLine]] = []
    current: list[ScanLine] = []
    for line in document.lines:
        if line.is_blank:
            if current:
                paragraphs.append(current)
                current = []
            continue
        current.append(line)
    if current:
        paragraphs.append(current)
    return paragraphs


def find_connectors(line: ScanLine) -> list[tuple[int, int]]:
    """Return whole-word connector hits on one line as scratch ranges."""
    scratch = line.scratch
    hits: list[tuple[int, int]] = []
    for connector in CONNECTORS:
        start = scratch.find(connector)
        while start != -1:
            end = start + len(connector)
            if line.table.is_boundary(start, end):
                hits.append((start, end))
            start = scratch.find(connector, start + 1)
    return sorted(hits)


def sentence_lengths(paragraph: list[ScanLine]) -> list[int]:
    """Token counts of each sentence in the paragraph."""
    text = " ".join(line.masked.strip() for line in paragraph)
    return [len(sentence.split()) for sentence in SENTENCE_SPLIT_RE.split(text) if sentence.strip()]


@register_check("connector-density")
def check_connector_density(
    rule: Rule, document: ScanDocument, settings: StructuralSettings
) -> Iterator[RawMatch]:
    for paragraph in split_paragraphs(document):
        hits = [(line, start, end) for line in paragraph for start, end in find_connectors(line)]
        if len(hits) > settings.max_connectors:
            line, start, end = hits[0]
            yield RawMatch(rule=rule, line=line.number, start=start, end=end)


@register_check("uniform-sentences")
def check_uniform_sentences(
    rule: Rule, document: ScanDocument, settings: StructuralSettings
) -> Iterator[RawMatch]:
    for paragraph in split_paragraphs(document):
        lengths = sentence_lengths(paragraph)
        if len(lengths) < settings.min_sentences:
            continue
        mean = statistics.fmean(lengths)
        variance = statistics.pvariance(lengths, mu=mean)
        if mean > settings.min_mean_words and variance < settings.uniformity_variance:
            first = paragraph[0]
            stripped = first.masked.strip()
            start = first.masked.index(stripped)
            yield emit(rule, first, start, start + len(stripped))


@register_check("em-dash")
def check_em_dash(
    rule: Rule, document: ScanDocument, settings: StructuralSettings
) -> Iterator[RawMatch]:
    for paragraph in split_paragraphs(document):
        dashes = [
            (line, column)
            for line in paragraph
            for column, char in enumerate(line.masked)
            if char == EM_DASH
        ]
        flagged = dashes[1:]
        if not flagged:
            continue
        collapsible = all(
            _is_short_clause(line.masked, column, settings) for line, column in flagged
        )
        for line, column in flagged:
            start, end = _dash_extent(line.masked, column)
            fix = EM_DASH_FIX if collapsible and start > 0 and end < len(line.masked) else None
            yield emit(rule, line, start, end, fix=fix)


def _dash_extent(text: str, column: int) -> tuple[int, int]:
    start = column
    while start > 0 and text[start - 1] == " ":
        start -= 1
    end = column + 1
    while end < len(text) and text[end] == " ":
        end += 1
    return (start, end)


def _is_short_clause(text: str, column: int, settings: StructuralSettings) -> bool:
    start, end = _dash_extent(text, column)
    if start == 0 or end >= len(text):
        return False
    clause = text[end:]
    terminator = CLAUSE_END_RE.search(clause)
    if terminator is not None:
        clause = clause[: terminator.start()]
    if EM_DASH in clause:
        return False
    words = clause.split()
    return 0 < len(words) <= settings.em_dash_fix_max_words
