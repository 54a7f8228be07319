"""Input mode detection."""

from __future__ import annotations

import logging
import re
from pathlib import PurePath

from tellscan.rules.base import Mode

logger = logging.getLogger(__name__)

COMMIT_FILENAMES = frozenset({"COMMIT_EDITMSG", "MERGE_MSG", "SQUASH_MSG", "TAG_EDITMSG"})

CODE_EXTENSIONS = frozenset(
    {
        "py", "pyi", "ts", "tsx", "js", "jsx", "mjs", "cjs", "rs", "go", "java", "kt",
        "swift", "c", "cc", "cpp", "h", "hpp", "cs", "rb", "php", "sh", "bash", "zsh",
        "fish", "lua", "r", "scala", "hs", "ml", "ex", "exs", "clj", "cljs", "dart",
        "nim", "zig",
    }
)

CODE_CONTENT_SIGNALS = (
    "def ", "fn ", "func ", "function ", "class ", "import ", "from ", "use ",
    "mod ", "const ", "let ", "var ", "type ", "interface ", "struct ", "enum ",
    "impl ", "pub fn", "async fn", "pub struct", "pub enum", "pub trait",
    "#include", "package ", "namespace ",
)

CODE_SIGNAL_MIN = 2
CODE_SCAN_LINES = 50
COMMIT_SUBJECT_MAX = 72

COMMIT_VERBS = frozenset(
    {
        "add", "added", "adds", "fix", "fixed", "fixes", "update", "updated", "updates",
        "change", "changed", "remove", "removed", "removes", "modify", "modified",
        "implement", "implemented", "refactor", "refactored", "create", "created",
        "delete", "deleted", "move", "moved", "improve", "improved", "enhance",
        "enhanced", "clean", "cleaned", "bump", "bumped", "drop", "dropped",
        "replace", "replaced", "resolve", "resolved", "revert", "reverted", "merge",
        "rename", "renamed", "introduce", "support", "allow", "handle", "use",
        "make", "document", "test", "upgrade", "downgrade", "release", "prepare",
    }
)

CONVENTIONAL_PREFIX_RE = re.compile(r"^[a-z]+(\([^)]*\))?!?:\s")
SENTENCE_BREAK_RE = re.compile(r"[.!?](\s|$)")


def detect_mode(
    explicit: Mode | None,
    filename: str | None,
    content: str,
) -> Mode:
    """Resolve the scan mode: explicit flag, then filename, then content."""
    if explicit is not None:
        return explicit

    if filename:
        mode = mode_from_filename(filename)
        logger.debug("mode %s from filename %s", mode.value, filename)
        return mode

    mode = mode_from_content(content)
    logger.debug("mode %s from content heuristic", mode.value)
    return mode


def mode_from_filename(filename: str) -> Mode:
    """Classify by file name alone; unknown and extensionless names are text."""
    path = PurePath(filename)
    if path.name in COMMIT_FILENAMES:
        return Mode.COMMIT
    extension = path.suffix.lstrip(".").lower()
    if extension in CODE_EXTENSIONS:
        return Mode.CODE
    return Mode.TEXT


def mode_from_content(content: str) -> Mode:
    """Classify stdin-style input with no filename."""
    if looks_like_commit_subject(content):
        return Mode.COMMIT
    if count_code_signals(content) >= CODE_SIGNAL_MIN:
        return Mode.CODE
    return Mode.TEXT


def looks_like_commit_subject(content: str) -> bool:
    """Return True for a lone short line shaped like a commit subject.

    The line must be the only content, stay within the subject length limit,
    carry no sentence punctuation and open with a conventional-commit prefix
    or a known commit verb.
    """
    lines = [line for line in content.splitlines() if line.strip()]
    if len(lines) != 1:
        return False
    subject = lines[0].strip()
    if len(subject) > COMMIT_SUBJECT_MAX:
        return False
    if SENTENCE_BREAK_RE.search(subject):
        return False
    if CONVENTIONAL_PREFIX_RE.match(subject):
        return True
    first_word = subject.split()[0].lower()
    return first_word in COMMIT_VERBS


def count_code_signals(content: str) -> int:
    """Count distinct code signals at line starts in the leading non-blank lines."""
    seen: set[str] = set()
    checked = 0
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        checked += 1
        if checked > CODE_SCAN_LINES:
            break
        for signal in CODE_CONTENT_SIGNALS:
            if stripped.startswith(signal):
                seen.add(signal)
    return len(seen)
