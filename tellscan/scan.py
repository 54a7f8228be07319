"""Scan pipeline: read, detect, match, resolve, filter."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import BinaryIO

from tellscan.detector import COMMIT_FILENAMES, detect_mode
from tellscan.errors import InputEncodingError, InputReadError, InputTooLargeError
from tellscan.fixes import apply_fixes
from tellscan.ignore import collect_ignored_lines, filter_ignored
from tellscan.matcher import match_document
from tellscan.positions import ScanDocument, resolve_matches
from tellscan.rules import RuleRegistry, categories_for_mode
from tellscan.rules.base import Category, Diagnostic, Mode, Severity
from tellscan.rules.structural import StructuralSettings

logger = logging.getLogger(__name__)

MAX_INPUT_BYTES = 64 * 1024 * 1024


@dataclass(slots=True)
class ScanOptions:
    """Per-invocation scan settings."""

    mode: Mode | None = None
    categories: tuple[Category, ...] | None = None
    min_severity: Severity = Severity.LOW
    structural: StructuralSettings = field(default_factory=StructuralSettings)
    ignore_words: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ScanResult:
    """Diagnostics for one input, ready for any renderer."""

    text: str
    mode: Mode
    diagnostics: list[Diagnostic]
    filename: str | None = None

    @property
    def fixable(self) -> list[Diagnostic]:
        return [item for item in self.diagnostics if item.fixable]

    @property
    def flagged(self) -> list[Diagnostic]:
        return [item for item in self.diagnostics if not item.fixable]

    def cleaned(self) -> str:
        return apply_fixes(self.text, self.diagnostics)


def read_input(
    path: Path | None,
    *,
    stdin: BinaryIO | None = None,
    max_bytes: int = MAX_INPUT_BYTES,
) -> str:
    """Read a file or stdin whole, enforcing the size ceiling before decoding."""
    if path is not None:
        try:
            size = path.stat().st_size
        except OSError as exc:
            raise InputReadError(f"Cannot read {path}: {exc.strerror or exc}") from exc
        if size > max_bytes:
            raise InputTooLargeError(size, max_bytes)
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise InputReadError(f"Cannot read {path}: {exc.strerror or exc}") from exc
    else:
        if stdin is None:
            raise InputReadError("No input stream available")
        raw = stdin.read(max_bytes + 1)

    if len(raw) > max_bytes:
        raise InputTooLargeError(len(raw), max_bytes)
    return decode_input(raw)


def decode_input(raw: bytes) -> str:
    """Decode strict UTF-8 input."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InputEncodingError(f"Input is not valid UTF-8 (byte offset {exc.start})") from exc


def scan_text(
    text: str,
    *,
    registry: RuleRegistry,
    filename: str | None = None,
    options: ScanOptions | None = None,
) -> ScanResult:
    """Scan one document and return sorted, filtered diagnostics."""
    options = options or ScanOptions()
    mode = detect_mode(options.mode, filename, text)
    commit_file = filename is not None and PurePath(filename).name in COMMIT_FILENAMES
    categories = categories_for_mode(mode, options.categories, commit_file=commit_file)
    rules = registry.for_categories(categories)
    logger.debug(
        "scanning %s in %s mode with %d rule(s)", filename or "<stdin>", mode.value, len(rules)
    )

    document = ScanDocument.from_text(text)
    diagnostics = resolve_matches(document, match_document(document, rules, options.structural))
    diagnostics = filter_ignored(
        diagnostics,
        ignored_lines=collect_ignored_lines(text),
        ignored_words=options.ignore_words,
    )
    diagnostics = [
        item for item in diagnostics if item.severity.rank >= options.min_severity.rank
    ]
    return ScanResult(text=text, mode=mode, diagnostics=diagnostics, filename=filename)
