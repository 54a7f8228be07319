"""Document model and scratch-offset to character-column mapping."""

from __future__ import annotations

import bisect
import unicodedata
from dataclasses import dataclass, field

from tellscan.errors import PositionError
from tellscan.protect import ProtectedSpan, find_protected_spans, is_fully_masked, mask_protected
from tellscan.rules.base import Diagnostic, RawMatch


def is_word_char(char: str) -> bool:
    """Word characters in any script: letters, digits, underscore, combining marks."""
    return char == "_" or char.isalnum() or unicodedata.category(char).startswith("M")


class CharBoundaryTable:
    """Case-folded scratch copy of a line plus the offsets where each character starts.

    Case folding can change length (``ß`` folds to ``ss``), so scratch offsets
    are not original columns. ``to_char`` translates them with a binary search.
    """

    __slots__ = ("scratch", "_starts")

    def __init__(self, line: str) -> None:
        starts: list[int] = []
        pieces: list[str] = []
        cursor = 0
        for char in line:
            starts.append(cursor)
            folded = char.casefold()
            pieces.append(folded)
            cursor += len(folded)
        starts.append(cursor)
        self.scratch = "".join(pieces)
        self._starts = starts

    def to_char(self, offset: int) -> int:
        """Return the original column whose folded form begins at ``offset``."""
        index = bisect.bisect_left(self._starts, offset)
        if index >= len(self._starts) or self._starts[index] != offset:
            raise PositionError(f"scratch offset {offset} is not on a character boundary")
        return index

    def to_scratch(self, column: int) -> int:
        """Return the scratch offset at which original ``column`` begins."""
        if not 0 <= column < len(self._starts):
            raise PositionError(f"column {column} is outside the line")
        return self._starts[column]

    def is_boundary(self, start: int, end: int) -> bool:
        """Return True when the scratch range is not glued to word characters."""
        scratch = self.scratch
        if start > 0 and is_word_char(scratch[start - 1]):
            return False
        if end < len(scratch) and is_word_char(scratch[end]):
            return False
        return True


@dataclass(slots=True)
class ScanLine:
    """One input line with its masked view and lazily built boundary table."""

    number: int
    text: str
    masked: str
    _table: CharBoundaryTable | None = field(default=None, repr=False)

    @property
    def table(self) -> CharBoundaryTable:
        if self._table is None:
            self._table = CharBoundaryTable(self.masked)
        return self._table

    @property
    def scratch(self) -> str:
        return self.table.scratch

    @property
    def is_blank(self) -> bool:
        return not self.masked.strip() or is_fully_masked(self.masked)


@dataclass(slots=True)
class ScanDocument:
    """Input text split into lines, with protected spans already masked."""

    text: str
    spans: list[ProtectedSpan]
    lines: list[ScanLine]

    @classmethod
    def from_text(cls, text: str) -> ScanDocument:
        spans = find_protected_spans(text)
        masked = mask_protected(text, spans)
        lines = [
            ScanLine(number=index, text=raw.removesuffix("\r"), masked=view.removesuffix("\r"))
            for index, (raw, view) in enumerate(
                zip(text.split("\n"), masked.split("\n"), strict=True), start=1
            )
        ]
        return cls(text=text, spans=spans, lines=lines)

    def line(self, number: int) -> ScanLine:
        return self.lines[number - 1]


def resolve_matches(document: ScanDocument, matches: list[RawMatch]) -> list[Diagnostic]:
    """Translate raw matches into sorted, de-duplicated diagnostics."""
    diagnostics: dict[tuple[str, int, int], Diagnostic] = {}
    for match in matches:
        line = document.line(match.line)
        col = line.table.to_char(match.start)
        end_col = line.table.to_char(match.end)
        rule = match.rule
        diagnostic = Diagnostic(
            rule_id=rule.rule_id,
            category=rule.category,
            severity=rule.severity,
            line=match.line,
            col=col,
            end_col=end_col,
            matched_text=line.text[col:end_col],
            message=rule.message,
            citation=rule.citation,
            fix=match.fix,
        )
        diagnostics.setdefault((rule.rule_id, match.line, col), diagnostic)
    return sorted(diagnostics.values(), key=Diagnostic.sort_key)
