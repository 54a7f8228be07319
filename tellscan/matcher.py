"""Word and phrase matching over masked, case-folded lines."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from tellscan.positions import ScanDocument
from tellscan.rules.base import RawMatch, Rule
from tellscan.rules.checks import get_check
from tellscan.rules.structural import StructuralSettings

logger = logging.getLogger(__name__)


def match_document(
    document: ScanDocument,
    rules: Iterable[Rule],
    settings: StructuralSettings | None = None,
) -> list[RawMatch]:
    """Run every rule over the document and collect raw matches.

    Protected spans are already masked in ``document``, so nothing here can
    match inside code or URLs. Overlapping hits from different rules are
    all kept.
    """
    settings = settings or StructuralSettings()
    matches: list[RawMatch] = []
    for rule in rules:
        if rule.is_check:
            found = list(get_check(rule.pattern)(rule, document, settings))
        else:
            found = list(match_pattern(rule, document))
        if found:
            logger.debug("%s: %d match(es)", rule.rule_id, len(found))
        matches.extend(found)
    return matches


def match_pattern(rule: Rule, document: ScanDocument) -> Iterator[RawMatch]:
    """Yield whole-word occurrences of a word or phrase rule."""
    needle = rule.pattern.casefold()
    for line in document.lines:
        if line.is_blank:
            continue
        scratch = line.scratch
        start = scratch.find(needle)
        while start != -1:
            end = start + len(needle)
            if line.table.is_boundary(start, end):
                yield RawMatch(rule=rule, line=line.number, start=start, end=end, fix=rule.fix)
            start = scratch.find(needle, start + 1)
