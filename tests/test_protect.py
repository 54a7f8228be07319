"""Tests for protected span detection and masking."""

from __future__ import annotations

from tellscan.protect import (
    MASK_CHAR,
    ProtectedSpan,
    find_protected_spans,
    is_fully_masked,
    is_protected,
    mask_protected,
)


def test_inline_code_span_is_protected() -> None:
    text = "Use `utilize` here."
    spans = find_protected_spans(text)
    assert spans == [ProtectedSpan(4, 13)]
    assert mask_protected(text, spans) == "Use " + MASK_CHAR * 9 + " here."


def test_double_backtick_span_closes_on_matching_run() -> None:
    text = "a ``x ` y`` b"
    spans = find_protected_spans(text)
    assert spans == [ProtectedSpan(2, 11)]


def test_unclosed_inline_span_runs_to_end_of_line() -> None:
    text = "see `open ended\nnext line"
    spans = find_protected_spans(text)
    assert spans == [ProtectedSpan(4, 15)]
    masked = mask_protected(text, spans)
    assert masked.split("\n")[1] == "next line"


def test_fenced_block_is_protected_through_closing_fence() -> None:
    text = "before\n```python\nutilize()\n```\nafter"
    spans = find_protected_spans(text)
    assert len(spans) == 1
    masked = mask_protected(text, spans)
    lines = masked.split("\n")
    assert lines[0] == "before"
    assert lines[2] == MASK_CHAR * len("utilize()")
    assert lines[4] == "after"


def test_tilde_fence_needs_tilde_close() -> None:
    text = "~~~\n```\nstill code\n~~~\nprose"
    masked = mask_protected(text, find_protected_spans(text))
    assert masked.split("\n")[2] == MASK_CHAR * len("still code")
    assert masked.split("\n")[4] == "prose"


def test_unclosed_fence_protects_rest_of_document() -> None:
    text = "intro\n```\ncode\nmore code"
    spans = find_protected_spans(text)
    assert spans == [ProtectedSpan(6, len(text))]


def test_url_only_line_is_protected() -> None:
    text = "Docs:\n  https://example.com/delve?x=1  \nDone."
    masked = mask_protected(text, find_protected_spans(text))
    assert "delve" not in masked
    assert masked.endswith("Done.")


def test_mask_keeps_length_and_newlines() -> None:
    text = "a `b`\n```\nc\n```\nd"
    masked = mask_protected(text, find_protected_spans(text))
    assert len(masked) == len(text)
    assert masked.count("\n") == text.count("\n")


def test_is_protected_uses_span_bounds() -> None:
    spans = [ProtectedSpan(2, 5), ProtectedSpan(10, 12)]
    assert is_protected(spans, 2)
    assert is_protected(spans, 4)
    assert not is_protected(spans, 5)
    assert is_protected(spans, 11)
    assert not is_protected(spans, 0)
    assert not is_protected([], 3)


def test_is_fully_masked() -> None:
    assert is_fully_masked(f"  {MASK_CHAR * 3} ")
    assert not is_fully_masked("")
    assert not is_fully_masked(f"{MASK_CHAR} text")
