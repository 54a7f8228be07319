"""Rules package: catalogue loading, validation and category selection."""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Iterable, Iterator
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

from tellscan.errors import ConfigError, RegistryError
from tellscan.rules import structural  # noqa: F401  (registers paragraph checks)
from tellscan.rules.base import RULE_KINDS, Category, Mode, Rule, Severity
from tellscan.rules.checks import known_checks

logger = logging.getLogger(__name__)

CATALOG_RESOURCE = "catalog.toml"
CATALOG_VERSION = 1
REQUIRED_FIELDS = ("id", "category", "severity", "pattern", "message", "citation")
OPTIONAL_FIELDS = ("kind", "fix")

MODE_CATEGORIES: dict[Mode, tuple[Category, ...]] = {
    Mode.TEXT: (Category.TEXT, Category.LLM_TELLS),
    Mode.COMMIT: (Category.TEXT, Category.LLM_TELLS, Category.COMMITS),
    Mode.CODE: (
        Category.COMMENTS,
        Category.NAMING,
        Category.DOCSTRINGS,
        Category.TESTS,
        Category.ERRORS,
        Category.API,
    ),
}
SELECTABLE_CATEGORIES: tuple[Category, ...] = (
    Category.COMMENTS,
    Category.NAMING,
    Category.COMMITS,
    Category.DOCSTRINGS,
    Category.TESTS,
    Category.ERRORS,
    Category.API,
)


class RuleRegistry:
    """Immutable, id-indexed rule collection."""

    __slots__ = ("_rules", "_by_id")

    def __init__(self, rules: Iterable[Rule]) -> None:
        ordered = tuple(rules)
        by_id: dict[str, Rule] = {}
        for rule in ordered:
            if rule.rule_id in by_id:
                raise RegistryError(f"Duplicate rule id: {rule.rule_id}")
            by_id[rule.rule_id] = rule
        self._rules = ordered
        self._by_id = by_id

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id

    def get(self, rule_id: str) -> Rule:
        try:
            return self._by_id[rule_id]
        except KeyError:
            raise ConfigError(f"Unknown rule id: {rule_id}") from None

    def ids(self) -> list[str]:
        return [rule.rule_id for rule in self._rules]

    def by_category(self, category: Category) -> tuple[Rule, ...]:
        return tuple(rule for rule in self._rules if rule.category is category)

    def for_categories(self, categories: Iterable[Category]) -> list[Rule]:
        """Return rules in the given categories, ordered by category then catalogue order."""
        wanted = set(categories)
        return [
            rule
            for category in Category
            if category in wanted
            for rule in self.by_category(category)
        ]

    def extended(self, rules: Iterable[Rule]) -> RuleRegistry:
        return RuleRegistry((*self._rules, *rules))

    def without(self, rule_ids: Iterable[str]) -> RuleRegistry:
        dropped = set(rule_ids)
        unknown = [rule_id for rule_id in dropped if rule_id not in self._by_id]
        if unknown:
            joined = ", ".join(sorted(unknown))
            raise ConfigError(f"Unknown rule ids: {joined}")
        return RuleRegistry(rule for rule in self._rules if rule.rule_id not in dropped)


@lru_cache(maxsize=1)
def default_registry() -> RuleRegistry:
    """Load the packaged catalogue once per process."""
    return load_rule_catalog()


def load_rule_catalog(path: Path | None = None) -> RuleRegistry:
    """Parse and validate a TOML rule catalogue; any malformed entry is fatal."""
    if path is None:
        source = f"tellscan.rules/{CATALOG_RESOURCE}"
        raw = resources.files(__name__).joinpath(CATALOG_RESOURCE).read_bytes()
    else:
        source = str(path)
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise RegistryError(f"Cannot read rule catalogue {path}: {exc}") from exc

    try:
        loaded = tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise RegistryError(f"Invalid rule catalogue {source}: {exc}") from exc

    version = loaded.get("version", CATALOG_VERSION)
    if version != CATALOG_VERSION:
        raise RegistryError(f"Unsupported rule catalogue version in {source}: {version!r}")

    entries = loaded.get("rule")
    if not isinstance(entries, list) or not entries:
        raise RegistryError(f"Rule catalogue {source} defines no [[rule]] entries")

    registry = RuleRegistry(
        parse_rule(entry, source=f"{source} entry {index}")
        for index, entry in enumerate(entries, start=1)
    )
    logger.debug("loaded %d rules from %s", len(registry), source)
    return registry


def parse_rule(entry: Any, *, source: str) -> Rule:
    """Validate one catalogue mapping and build a Rule."""
    if not isinstance(entry, dict):
        raise RegistryError(f"{source}: rule must be a table")

    missing = [name for name in REQUIRED_FIELDS if name not in entry]
    if missing:
        raise RegistryError(f"{source}: missing field(s): {', '.join(missing)}")
    unknown = sorted(set(entry) - set(REQUIRED_FIELDS) - set(OPTIONAL_FIELDS))
    if unknown:
        raise RegistryError(f"{source}: unknown field(s): {', '.join(unknown)}")

    rule_id = _required_str(entry, "id", source)
    pattern = _required_str(entry, "pattern", source)
    if pattern != pattern.strip():
        raise RegistryError(f"{source}: pattern must not start or end with whitespace")

    try:
        category = Category(_required_str(entry, "category", source))
    except ValueError:
        choices = ", ".join(item.value for item in Category)
        raise RegistryError(f"{source}: category must be one of: {choices}") from None
    try:
        severity = Severity.parse(_required_str(entry, "severity", source))
    except ValueError as exc:
        raise RegistryError(f"{source}: {exc}") from None

    kind = entry.get("kind", "phrase" if any(char.isspace() for char in pattern) else "word")
    if kind not in RULE_KINDS:
        raise RegistryError(f"{source}: kind must be one of: {', '.join(RULE_KINDS)}")

    fix = entry.get("fix")
    if fix is not None and not isinstance(fix, str):
        raise RegistryError(f"{source}: fix must be a string")
    if kind == "check":
        if pattern not in known_checks():
            raise RegistryError(f"{source}: no check named '{pattern}'")
        if fix is not None:
            raise RegistryError(f"{source}: check rules compute their own fixes")

    return Rule(
        rule_id=rule_id,
        category=category,
        severity=severity,
        kind=kind,
        pattern=pattern,
        message=_required_str(entry, "message", source),
        citation=_required_str(entry, "citation", source),
        fix=fix,
    )


def parse_category_selection(names: Iterable[str]) -> tuple[Category, ...]:
    """Parse ``--rules`` names; only code-mode categories are selectable."""
    allowed = {category.value: category for category in SELECTABLE_CATEGORIES}
    selected: list[Category] = []
    unknown: list[str] = []
    for raw in names:
        name = raw.strip().lower()
        if not name:
            continue
        category = allowed.get(name)
        if category is None:
            unknown.append(raw)
        elif category not in selected:
            selected.append(category)
    if unknown:
        valid = ", ".join(category.value for category in SELECTABLE_CATEGORIES)
        raise ConfigError(f"Unknown rule categories: {', '.join(unknown)}. Valid: {valid}")
    if not selected:
        raise ConfigError("No rule categories selected")
    return tuple(selected)


def categories_for_mode(
    mode: Mode,
    selection: tuple[Category, ...] | None = None,
    *,
    commit_file: bool = False,
) -> tuple[Category, ...]:
    """Resolve the active categories for a mode and optional code-mode selection."""
    if mode is Mode.CODE:
        categories = selection if selection is not None else MODE_CATEGORIES[Mode.CODE]
        if commit_file and Category.COMMITS not in categories:
            return (*categories, Category.COMMITS)
        return categories
    return MODE_CATEGORIES[mode]


def _required_str(entry: dict[str, Any], name: str, source: str) -> str:
    value = entry.get(name)
    if not isinstance(value, str) or not value:
        raise RegistryError(f"{source}: {name} must be a non-empty string")
    return value


__all__ = [
    "MODE_CATEGORIES",
    "SELECTABLE_CATEGORIES",
    "RuleRegistry",
    "categories_for_mode",
    "default_registry",
    "load_rule_catalog",
    "parse_category_selection",
    "parse_rule",
]
