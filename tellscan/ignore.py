"""Inline ignore directives and ignore-word filtering."""

from __future__ import annotations

import re
from collections.abc import Iterable

from tellscan.rules.base import Diagnostic

HTML_DIRECTIVE_RE = re.compile(r"^<!--\s*(/?)tellscan-ignore\s*-->$")
COMMENT_DIRECTIVE_RE = re.compile(r"^(?:#|//)\s*tellscan-ignore-(start|end|next-line)$")


def collect_ignored_lines(text: str) -> set[int]:
    """Return 1-based line numbers covered by ignore directives.

    Supported forms are ``<!-- tellscan-ignore -->`` ... ``<!-- /tellscan-ignore -->``,
    ``# tellscan-ignore-start`` ... ``# tellscan-ignore-end`` and
    ``# tellscan-ignore-next-line`` (``//`` works in place of ``#``). A block
    left open runs to the end of the input.
    """
    ignored: set[int] = set()
    in_block = False
    skip_next = False

    for number, line in enumerate(text.split("\n"), start=1):
        stripped = line.strip()
        if skip_next:
            ignored.add(number)
            skip_next = False
            continue

        html = HTML_DIRECTIVE_RE.match(stripped)
        comment = COMMENT_DIRECTIVE_RE.match(stripped)
        if html is not None:
            in_block = not html.group(1)
            ignored.add(number)
        elif comment is not None:
            directive = comment.group(1)
            if directive == "start":
                in_block = True
            elif directive == "end":
                in_block = False
            else:
                skip_next = True
            ignored.add(number)
        elif in_block:
            ignored.add(number)

    return ignored


def filter_ignored(
    diagnostics: Iterable[Diagnostic],
    *,
    ignored_lines: set[int],
    ignored_words: Iterable[str] = (),
) -> list[Diagnostic]:
    """Drop findings on ignored lines or whose matched text is an ignored word."""
    words = {word.casefold() for word in ignored_words}
    return [
        diagnostic
        for diagnostic in diagnostics
        if diagnostic.line not in ignored_lines
        and diagnostic.matched_text.casefold() not in words
    ]
