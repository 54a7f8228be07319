"""Rule, severity and diagnostic models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Severity(str, Enum):
    """How strongly a pattern signals generated text."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANKS[self]

    @classmethod
    def parse(cls, value: str) -> Severity:
        try:
            return cls(value.lower())
        except ValueError:
            choices = ", ".join(item.value for item in cls)
            raise ValueError(f"severity must be one of: {choices}") from None


_SEVERITY_RANKS = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}


class Category(str, Enum):
    """Rule families; modes activate sets of categories."""

    TEXT = "text"
    LLM_TELLS = "llm-tells"
    COMMENTS = "comments"
    NAMING = "naming"
    COMMITS = "commits"
    DOCSTRINGS = "docstrings"
    TESTS = "tests"
    ERRORS = "errors"
    API = "api"


class Mode(str, Enum):
    """Input classification driving category selection."""

    TEXT = "text"
    CODE = "code"
    COMMIT = "commit"


RULE_KINDS = ("word", "phrase", "check")


@dataclass(frozen=True, slots=True)
class Rule:
    """A single catalogue entry."""

    rule_id: str
    category: Category
    severity: Severity
    kind: str
    pattern: str
    message: str
    citation: str
    fix: str | None = None

    @property
    def is_check(self) -> bool:
        return self.kind == "check"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.rule_id,
            "category": self.category.value,
            "severity": self.severity.value,
            "kind": self.kind,
            "pattern": self.pattern,
            "fix": self.fix,
            "message": self.message,
            "citation": self.citation,
        }


@dataclass(frozen=True, slots=True)
class RawMatch:
    """A rule hit in scratch-buffer coordinates of one line.

    Offsets index the case-folded copy of the line. Only the position
    mapper turns these into original character columns.
    """

    rule: Rule
    line: int
    start: int
    end: int
    fix: str | None = None


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A finding positioned against the original input."""

    rule_id: str
    category: Category
    severity: Severity
    line: int
    col: int
    end_col: int
    matched_text: str
    message: str
    citation: str
    fix: str | None = None

    @property
    def fixable(self) -> bool:
        return self.fix is not None

    def sort_key(self) -> tuple[int, int, str]:
        return (self.line, self.col, self.rule_id)
