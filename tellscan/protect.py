"""Protected span detection for code fences, inline code and bare URLs."""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass

MASK_CHAR = "\ufffc"
FENCE_CHARS = ("`", "~")
URL_LINE_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://\S+$")


@dataclass(frozen=True, slots=True)
class ProtectedSpan:
    """Half-open character range of the document exempt from matching."""

    start: int
    end: int

    def __contains__(self, offset: int) -> bool:
        return self.start <= offset < self.end


def find_protected_spans(text: str) -> list[ProtectedSpan]:
    """Return sorted, non-overlapping protected spans in a single pass.

    Fenced blocks (three or more backticks or tildes) are protected from the
    opening fence through the closing one; an unclosed fence protects the
    rest of the document. Inline code spans close on a backtick run of the
    same length on the same line, otherwise they run to the end of the line.
    A line holding nothing but a URL is protected whole.
    """
    spans: list[ProtectedSpan] = []
    fence: str | None = None
    fence_start = 0
    offset = 0

    for line in text.split("\n"):
        line_end = offset + len(line)
        stripped = line.strip()

        if fence is not None:
            if _closes_fence(stripped, fence):
                spans.append(ProtectedSpan(fence_start, line_end))
                fence = None
        else:
            opening = _fence_run(stripped)
            if opening is not None:
                fence = opening
                fence_start = offset
            elif URL_LINE_RE.match(stripped):
                spans.append(ProtectedSpan(offset, line_end))
            else:
                spans.extend(_inline_spans(line, offset))

        offset = line_end + 1

    if fence is not None:
        spans.append(ProtectedSpan(fence_start, len(text)))
    return spans


def mask_protected(text: str, spans: list[ProtectedSpan]) -> str:
    """Replace protected characters with MASK_CHAR, keeping offsets and newlines."""
    if not spans:
        return text
    pieces: list[str] = []
    cursor = 0
    for span in spans:
        pieces.append(text[cursor : span.start])
        pieces.append(
            "".join("\n" if char == "\n" else MASK_CHAR for char in text[span.start : span.end])
        )
        cursor = span.end
    pieces.append(text[cursor:])
    return "".join(pieces)


def is_protected(spans: list[ProtectedSpan], offset: int) -> bool:
    """Return whether a document offset falls inside any protected span."""
    index = bisect.bisect_right([span.start for span in spans], offset) - 1
    return index >= 0 and offset in spans[index]


def is_fully_masked(line: str) -> bool:
    """Return True for non-empty lines made only of protected content."""
    stripped = line.strip()
    return bool(stripped) and not stripped.strip(MASK_CHAR)


def _fence_run(stripped: str) -> str | None:
    for char in FENCE_CHARS:
        if stripped.startswith(char * 3):
            length = len(stripped) - len(stripped.lstrip(char))
            return char * length
    return None


def _closes_fence(stripped: str, fence: str) -> bool:
    return len(stripped) >= len(fence) and not stripped.strip(fence[0])


def _inline_spans(line: str, offset: int) -> list[ProtectedSpan]:
    spans: list[ProtectedSpan] = []
    index = 0
    while True:
        open_at = line.find("`", index)
        if open_at == -1:
            return spans
        run_length = _run_length(line, open_at)
        close_at = _find_closing_run(line, open_at + run_length, run_length)
        if close_at == -1:
            spans.append(ProtectedSpan(offset + open_at, offset + len(line)))
            return spans
        index = close_at + run_length
        spans.append(ProtectedSpan(offset + open_at, offset + index))


def _run_length(line: str, start: int) -> int:
    end = start
    while end < len(line) and line[end] == "`":
        end += 1
    return end - start


def _find_closing_run(line: str, start: int, run_length: int) -> int:
    index = start
    while True:
        candidate = line.find("`", index)
        if candidate == -1:
            return -1
        length = _run_length(line, candidate)
        if length == run_length:
            return candidate
        index = candidate + length
