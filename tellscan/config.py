"""Configuration loading for tellscan."""

from __future__ import annotations

import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from tellscan.errors import ConfigError
from tellscan.rules import RuleRegistry, parse_rule
from tellscan.rules.base import Rule, Severity
from tellscan.rules.structural import StructuralSettings

CONFIG_FILENAMES = (".tellscan.toml", "tellscan.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("tellscan",)
MAX_CONFIG_BYTES = 1024 * 1024

MODES = {"auto", "text", "code", "commit"}
FORMATS = {"text", "json"}
COLORS = {"auto", "always", "never"}
USER_RULE_CATEGORY = "text"
USER_RULE_CITATION = "project config"


@dataclass(slots=True)
class IgnoreConfig:
    """Findings to drop after matching."""

    words: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"words": list(self.words)}


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    mode: str = "auto"
    min_severity: Severity = Severity.LOW
    format: str = "text"
    color: str = "auto"
    rule_disable: list[str] = field(default_factory=list)
    custom_rules: list[Rule] = field(default_factory=list)
    structural: StructuralSettings = field(default_factory=StructuralSettings)
    ignore: IgnoreConfig = field(default_factory=IgnoreConfig)
    source: str | None = None

    def apply_to(self, registry: RuleRegistry) -> RuleRegistry:
        """Return the registry with custom rules added and disabled ids removed."""
        configured = registry.extended(self.custom_rules) if self.custom_rules else registry
        if self.rule_disable:
            configured = configured.without(self.rule_disable)
        return configured

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "min_severity": self.min_severity.value,
            "format": self.format,
            "color": self.color,
            "rules": {
                "disable": list(self.rule_disable),
                "custom": [rule.to_dict() for rule in self.custom_rules],
            },
            "structural": asdict(self.structural),
            "ignore": self.ignore.to_dict(),
            "source": self.source,
        }


def load_app_config(cwd: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or directory-local files with precedence."""
    cwd = cwd.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (cwd / config_path)
        if not resolved.exists():
            raise ConfigError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = cwd / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = cwd / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            'mode = "auto"',
            'min_severity = "low"',
            'format = "text"',
            'color = "auto"',
            "",
            "[rules]",
            '# disable = ["text.robust"]',
            "disable = []",
            "",
            "[[rules.custom]]",
            'id = "project.synergy"',
            'pattern = "synergy"',
            'severity = "medium"',
            'message = "Buzzword: \'synergy\'"',
            "",
            "[structural]",
            "max_connectors = 2",
            "min_sentences = 4",
            "uniformity_variance = 9.0",
            "min_mean_words = 5.0",
            "em_dash_fix_max_words = 8",
            "",
            "[ignore]",
            'words = ["robust"]',
            "",
        ]
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        size = path.stat().st_size
    except OSError as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    if size > MAX_CONFIG_BYTES:
        raise ConfigError(f"Config file {path} exceeds {MAX_CONFIG_BYTES} bytes")
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    rules_mapping = _as_table(mapping.get("rules"), "rules")
    structural_mapping = _as_table(mapping.get("structural"), "structural")
    ignore_mapping = _as_table(mapping.get("ignore"), "ignore")

    try:
        min_severity = Severity.parse(str(mapping.get("min_severity", "low")))
    except ValueError as exc:
        raise ConfigError(f"min_severity: {exc}") from None

    return AppConfig(
        mode=_as_choice(mapping.get("mode", "auto"), MODES, "mode"),
        min_severity=min_severity,
        format=_as_choice(mapping.get("format", "text"), FORMATS, "format"),
        color=_as_choice(mapping.get("color", "auto"), COLORS, "color"),
        rule_disable=_as_str_list(rules_mapping.get("disable"), "rules.disable"),
        custom_rules=_parse_custom_rules(rules_mapping.get("custom"), source=source),
        structural=_parse_structural(structural_mapping),
        ignore=IgnoreConfig(words=_as_str_list(ignore_mapping.get("words"), "ignore.words")),
        source=source,
    )


def _parse_custom_rules(value: Any, *, source: str) -> list[Rule]:
    items = _as_table_list(value, "rules.custom")
    parsed: list[Rule] = []
    for index, item in enumerate(items, start=1):
        entry = dict(item)
        entry.setdefault("category", USER_RULE_CATEGORY)
        entry.setdefault("citation", USER_RULE_CITATION)
        parsed.append(parse_rule(entry, source=f"{source} rules.custom[{index}]"))
    return parsed


def _parse_structural(value: dict[str, Any]) -> StructuralSettings:
    defaults = StructuralSettings()
    settings = StructuralSettings(
        max_connectors=_as_int(
            value.get("max_connectors", defaults.max_connectors), "structural.max_connectors"
        ),
        min_sentences=_as_int(
            value.get("min_sentences", defaults.min_sentences), "structural.min_sentences"
        ),
        uniformity_variance=_as_float(
            value.get("uniformity_variance", defaults.uniformity_variance),
            "structural.uniformity_variance",
        ),
        min_mean_words=_as_float(
            value.get("min_mean_words", defaults.min_mean_words), "structural.min_mean_words"
        ),
        em_dash_fix_max_words=_as_int(
            value.get("em_dash_fix_max_words", defaults.em_dash_fix_max_words),
            "structural.em_dash_fix_max_words",
        ),
    )
    if settings.max_connectors < 0:
        raise ConfigError("structural.max_connectors must be >= 0")
    if settings.min_sentences < 2:
        raise ConfigError("structural.min_sentences must be >= 2")
    return settings


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{field_name} must be a table/object")
    return value


def _as_table_list(value: Any, field_name: str) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{field_name} must be a list of tables")
    output: list[dict[str, Any]] = []
    for item in value:
        if not isinstance(item, dict):
            raise ConfigError(f"{field_name} must be a list of tables")
        output.append(item)
    return output


def _as_str_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{field_name} must be a list of strings")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ConfigError(f"{field_name} must be a list of strings")
        items.append(item)
    return items


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ConfigError(f"{field_name} must be one of: {choices}")
    return value


def _as_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ConfigError(f"{field_name} must be an integer")
    return raw


def _as_float(raw: Any, field_name: str) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ConfigError(f"{field_name} must be a number")
    return float(raw)
