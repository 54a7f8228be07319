"""CLI entrypoint for tellscan."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from tellscan import __version__
from tellscan.config import (
    COLORS,
    FORMATS,
    MODES,
    AppConfig,
    default_config_template,
    load_app_config,
)
from tellscan.errors import ConfigError, InputReadError, TellscanError
from tellscan.output import (
    diff_note,
    render_annotations,
    render_clean,
    render_diff,
    render_dry_run,
    render_json,
    render_report,
)
from tellscan.rules import RuleRegistry, default_registry, parse_category_selection
from tellscan.rules.base import Category, Mode, Severity
from tellscan.scan import ScanOptions, ScanResult, read_input, scan_text

app = typer.Typer(
    name="tellscan",
    no_args_is_help=True,
    help="Find and fix machine-writing tells in prose, code and commit messages.",
)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log debug details to stderr."),
    ] = False,
) -> None:
    """Root command callback."""
    _ = version
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s", stream=sys.stderr)


@app.command("scan")
def scan_command(
    file: Annotated[
        Path | None,
        typer.Argument(help="File to scan. Reads stdin when omitted or '-'."),
    ] = None,
    mode: Annotated[
        str | None, typer.Option(help="Scan mode: auto|text|code|commit.", show_default="auto")
    ] = None,
    rules: Annotated[
        str | None,
        typer.Option(
            "--rules",
            help="Comma-separated code-mode categories: "
            "comments,naming,commits,docstrings,tests,errors,api.",
        ),
    ] = None,
    min_severity: Annotated[
        str | None,
        typer.Option(
            "--min-severity",
            help="Lowest severity to keep: critical|high|medium|low.",
            show_default="low",
        ),
    ] = None,
    report: Annotated[
        bool, typer.Option("--report", help="Write a findings report to stderr.")
    ] = False,
    diff: Annotated[
        bool, typer.Option("--diff", help="Print a unified diff of auto-fixes.")
    ] = False,
    annotate: Annotated[
        bool, typer.Option("--annotate", help="Print the input; mark findings on stderr.")
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="List pending fixes on stderr; print input unchanged."),
    ] = False,
    format: Annotated[
        str | None, typer.Option(help="Output format: text|json.", show_default="text")
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write primary output to a file instead of stdout."),
    ] = None,
    color: Annotated[
        str | None, typer.Option(help="Colour diagnostics: auto|always|never.", show_default="auto")
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Scan a file or stdin; print the cleaned text unless another view is chosen."""
    app_config = _load_config_or_raise(Path("."), config_file)

    resolved_mode = _choice_or_default(
        value=mode, default=app_config.mode, allowed=MODES, field_name="--mode"
    )
    selection = _parse_rules_or_raise(rules)
    explicit_mode = None if resolved_mode == "auto" else Mode(resolved_mode)
    if selection is not None:
        if explicit_mode not in (None, Mode.CODE):
            raise typer.BadParameter(
                "--rules selects code-mode categories and cannot be used with "
                f"--mode {resolved_mode}",
                param_hint="--rules",
            )
        explicit_mode = Mode.CODE

    severity_floor = _severity_or_default(min_severity, app_config.min_severity)
    output_format = _choice_or_default(
        value=format, default=app_config.format, allowed=FORMATS, field_name="--format"
    )
    color_choice = _choice_or_default(
        value=color, default=app_config.color, allowed=COLORS, field_name="--color"
    )
    _check_view_flags(
        report=report, diff=diff, annotate=annotate, dry_run=dry_run, output_format=output_format
    )
    registry = _build_registry_or_raise(app_config)

    filename = None if file is None or str(file) == "-" else file
    try:
        stdin = sys.stdin.buffer if filename is None else None
        text = read_input(filename, stdin=stdin)
        result = scan_text(
            text,
            registry=registry,
            filename=str(filename) if filename is not None else None,
            options=ScanOptions(
                mode=explicit_mode,
                categories=selection,
                min_severity=severity_floor,
                structural=app_config.structural,
                ignore_words=list(app_config.ignore.words),
            ),
        )
        primary, diagnostics = _render_views(
            result,
            report=report,
            diff=diff,
            annotate=annotate,
            dry_run=dry_run,
            output_format=output_format,
            color=_color_enabled(color_choice),
        )
        _write_primary(primary, output)
    except TellscanError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if diagnostics:
        typer.echo(diagnostics, err=True)


@app.command("rules")
def rules_command(
    category: Annotated[
        str | None, typer.Option(help="Only list rules in this category.")
    ] = None,
    format: Annotated[str, typer.Option(help="Output format: text|json.")] = "text",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """List the rule catalogue, including rules added by config."""
    output_format = format.lower()
    if output_format not in FORMATS:
        raise typer.BadParameter("format must be one of: json, text", param_hint="--format")

    app_config = _load_config_or_raise(Path("."), config_file)
    registry = _build_registry_or_raise(app_config)
    selected = list(registry)
    if category is not None:
        try:
            wanted = Category(category.lower())
        except ValueError:
            choices = ", ".join(item.value for item in Category)
            raise typer.BadParameter(
                f"category must be one of: {choices}", param_hint="--category"
            ) from None
        selected = list(registry.by_category(wanted))

    if output_format == "json":
        payload = {
            "rules": [rule.to_dict() for rule in selected],
            "meta": {"config_source": app_config.source, "total": len(selected)},
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [f"Available rules ({len(selected)}):"]
    for rule in selected:
        fix = f" -> {rule.fix!r}" if rule.fix is not None else ""
        lines.append(f"- {rule.rule_id} [{rule.severity.value}] {rule.message}{fix}")
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    format: Annotated[str, typer.Option(help="Output format: text|json.")] = "text",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in FORMATS:
        raise typer.BadParameter("format must be one of: json, text", param_hint="--format")

    app_config = _load_config_or_raise(Path("."), config_file)
    registry = _build_registry_or_raise(app_config)
    payload = app_config.to_dict()
    payload["rule_count"] = len(registry)

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- mode: {payload['mode']}",
        f"- min_severity: {payload['min_severity']}",
        f"- format: {payload['format']}",
        f"- color: {payload['color']}",
        f"- rules.disable: {payload['rules']['disable']}",
        f"- rules.custom: {[rule['id'] for rule in payload['rules']['custom']]}",
        f"- structural: {payload['structural']}",
        f"- ignore.words: {payload['ignore']['words']}",
        f"- rule_count: {payload['rule_count']}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".tellscan.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


def main() -> None:
    """Console script entrypoint."""
    app()


def _render_views(
    result: ScanResult,
    *,
    report: bool,
    diff: bool,
    annotate: bool,
    dry_run: bool,
    output_format: str,
    color: bool,
) -> tuple[str, str]:
    if output_format == "json":
        return (render_json(result) + "\n", "")
    if diff:
        patch = render_diff(result)
        return (patch, "" if patch else diff_note(result))
    if annotate:
        return (result.text, render_annotations(result, color=color))

    notes: list[str] = []
    if dry_run:
        primary = result.text
        notes.append(render_dry_run(result, color=color))
    else:
        primary = render_clean(result)
    if report:
        notes.append(render_report(result, color=color))
    return (primary, "\n".join(notes))


def _check_view_flags(
    *, report: bool, diff: bool, annotate: bool, dry_run: bool, output_format: str
) -> None:
    chosen = [
        flag
        for flag, enabled in (("--diff", diff), ("--annotate", annotate), ("--dry-run", dry_run))
        if enabled
    ]
    if len(chosen) > 1:
        raise typer.BadParameter(f"{' and '.join(chosen)} cannot be combined.")
    if report and (diff or annotate):
        raise typer.BadParameter(f"--report cannot be combined with {chosen[0]}.")
    if output_format == "json" and (chosen or report):
        raise typer.BadParameter(
            "--format json cannot be combined with other views.", param_hint="--format"
        )


def _write_primary(text: str, output: Path | None) -> None:
    if output is None:
        typer.echo(text, nl=False)
        return
    if output.is_symlink():
        raise InputReadError(f"Refusing to write through symlink: {output}")
    try:
        with output.open("w", encoding="utf-8", newline="") as file_obj:
            file_obj.write(text)
    except OSError as exc:
        raise InputReadError(f"Cannot write {output}: {exc.strerror or exc}") from exc


def _color_enabled(choice: str) -> bool:
    if choice == "always":
        return True
    if choice == "never":
        return False
    return sys.stderr.isatty()


def _load_config_or_raise(cwd: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(cwd, config_path=config_file)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _build_registry_or_raise(app_config: AppConfig) -> RuleRegistry:
    try:
        return app_config.apply_to(default_registry())
    except ConfigError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.rules") from exc


def _parse_rules_or_raise(raw: str | None) -> tuple[Category, ...] | None:
    if raw is None:
        return None
    try:
        return parse_category_selection(raw.split(","))
    except ConfigError as exc:
        raise typer.BadParameter(str(exc), param_hint="--rules") from exc


def _severity_or_default(value: str | None, default: Severity) -> Severity:
    if value is None:
        return default
    try:
        return Severity.parse(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--min-severity") from exc


def _choice_or_default(
    *,
    value: str | None,
    default: str,
    allowed: set[str],
    field_name: str,
) -> str:
    resolved = (value or default).lower()
    if resolved not in allowed:
        choices = ", ".join(sorted(allowed))
        raise typer.BadParameter(f"{field_name} must be one of: {choices}", param_hint=field_name)
    return resolved
