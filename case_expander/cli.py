from __future__ import annotations

import json
import logging
import sys
from itertools import islice
from pathlib import Path
from typing import Any, Optional, Sequence

import typer
import yaml
from rich.console import Console
from rich.table import Table

from case_expander.core.errors import ExpanderError, SuiteLoadError, SuiteValidationError
from case_expander.core.expand.coverage import coverage_stats
from case_expander.core.expand.expand_cases import Expansion, expand_method
from case_expander.core.expand.strategy_config import (
    STRATEGY_DESCRIPTIONS,
    ExpanderSettings,
    SettingsConfigError,
    load_and_merge,
)
from case_expander.core.io.load_suite import load_suite
from case_expander.core.lint.lint_suite import lint_suite
from case_expander.core.model import STRATEGIES, MethodDeclaration, TestCase, is_missing
from case_expander.core.validate.validate_suite import summarize_suite, validate_suite

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()

SUITE_FORMAT_VERSION = "v0"


@app.callback()
def _callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log expansion details to stderr"),
) -> None:
    """Case expander CLI."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )


@app.command("strategies")
def strategies(
    settings_file: Optional[str] = typer.Option(
        None, "--settings", help="Optional YAML settings file"
    ),
) -> None:
    """List expansion strategies and the active default."""
    settings = _load_settings_or_exit(settings_file, file=None)

    typer.echo("Strategies:")
    for name in STRATEGIES:
        marker = " [default]" if name == settings.default_strategy else ""
        typer.echo(f"- {name}{marker}: {STRATEGY_DESCRIPTIONS[name]}")


@app.command("validate")
def validate(
    path: str = typer.Argument(..., help="Path to a suite file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    settings_file: Optional[str] = typer.Option(None, "--settings", help="Optional YAML settings file"),
) -> None:
    """Validate a suite file and check every method can be expanded."""
    if format not in ("text", "json"):
        _print_errors([_unknown_format("E_VALIDATE_UNKNOWN_FORMAT", format, ("text", "json"))])
        raise typer.Exit(code=2)

    settings = _load_settings_or_exit(settings_file, file=None)

    try:
        suite_raw = load_suite(path)
    except SuiteLoadError as e:
        if format == "json":
            _emit_json("validate", False, exit_code=1, errors=[e], summary=None)
        _print_errors([e])
        raise typer.Exit(code=1)

    suite, errors = validate_suite(suite_raw, settings)
    if errors or suite is None:
        if format == "json":
            _emit_json("validate", False, exit_code=2, errors=errors, summary=None)
        _print_errors(errors)
        raise typer.Exit(code=2)

    if format == "text":
        typer.echo(summarize_suite(suite))
        return

    summary = {
        "schema_version": suite.schema_version,
        "test_count": len(suite.order),
        "tests": {
            name: _method_summary(suite.methods_by_name[name]) for name in suite.order
        },
    }
    _emit_json("validate", True, exit_code=0, errors=[], summary=summary)


@app.command("lint")
def lint(
    path: str = typer.Argument(..., help="Path to a suite file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    settings_file: Optional[str] = typer.Option(None, "--settings", help="Optional YAML settings file"),
) -> None:
    """Lint a suite file (rules beyond validation)."""
    if format not in ("text", "json"):
        _print_errors([_unknown_format("E_LINT_UNKNOWN_FORMAT", format, ("text", "json"))])
        raise typer.Exit(code=2)

    settings = _load_settings_or_exit(settings_file, file=None)

    try:
        suite_raw = load_suite(path)
    except SuiteLoadError as e:
        if format == "json":
            _emit_json("lint", False, exit_code=1, errors=[e], summary=None)
        _print_errors([e])
        raise typer.Exit(code=1)

    lint_errors = lint_suite(suite_raw, settings)
    _, validation_errors = validate_suite(suite_raw, settings)
    errors: list[ExpanderError] = [*lint_errors, *validation_errors]

    if format == "text":
        typer.echo(f"Suite format {SUITE_FORMAT_VERSION}")
        if errors:
            _print_errors(errors)
            raise typer.Exit(code=2)
        typer.echo("OK: lint passed")
        return

    if errors:
        _emit_json("lint", False, exit_code=2, errors=errors, summary=None)
    _emit_json("lint", True, exit_code=0, errors=[], summary=None)


@app.command("expand")
def expand(
    path: str = typer.Argument(..., help="Path to a suite file (.yaml/.yml/.json)"),
    test: Optional[str] = typer.Option(None, "--test", help="Expand only this test"),
    strategy: Optional[str] = typer.Option(
        None, "--strategy", help="Override the declared strategy: combinatorial|sequential|pairwise"
    ),
    format: str = typer.Option("text", "--format", help="Output format: text|json|table"),
    out: Optional[str] = typer.Option(None, "--out", help="Write expanded cases as YAML to this path"),
    settings_file: Optional[str] = typer.Option(None, "--settings", help="Optional YAML settings file"),
) -> None:
    """Expand the declared parameters of each test into cases."""
    if format not in ("text", "json", "table"):
        _print_errors([_unknown_format("E_EXPAND_UNKNOWN_FORMAT", format, ("text", "json", "table"))])
        raise typer.Exit(code=2)

    try:
        suite_raw = load_suite(path)
    except SuiteLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)

    file = suite_raw.get("__file__")
    settings = _load_settings_or_exit(settings_file, file=file)

    if strategy is not None and strategy.strip().lower() not in STRATEGIES:
        _print_errors(
            [
                SuiteValidationError(
                    code="E_EXPAND_UNKNOWN_STRATEGY",
                    message=f"unknown strategy: {strategy} (choose one of: {', '.join(STRATEGIES)})",
                    file=file,
                    path="strategy",
                )
            ]
        )
        raise typer.Exit(code=2)

    suite, errors = validate_suite(suite_raw, settings)
    if errors or suite is None:
        _print_errors(errors)
        raise typer.Exit(code=2)

    if test is not None:
        if test not in suite.methods_by_name:
            _print_errors(
                [
                    SuiteValidationError(
                        code="E_EXPAND_UNKNOWN_TEST",
                        message=f"--test references unknown test: {test} (choose one of: {', '.join(suite.order)})",
                        file=file,
                        path="test",
                    )
                ]
            )
            raise typer.Exit(code=2)
        names = [test]
    else:
        names = list(suite.order)

    results: list[dict[str, Any]] = []
    cases_by_name: dict[str, list[TestCase]] = {}
    for name in names:
        method = suite.methods_by_name[name]
        try:
            expansion = expand_method(method, strategy=strategy)
        except ExpanderError as e:
            _print_errors([e.in_suite(file=file, path=f"{name}.{e.path or 'slots'}")])
            raise typer.Exit(code=2)

        cases, size = _bounded_cases(expansion, settings.max_cases)
        if cases is None:
            _print_errors(
                [
                    SuiteValidationError(
                        code="E_EXPAND_TOO_MANY_CASES",
                        message=f"{name} expands to {size} cases (max_cases={settings.max_cases})",
                        file=file,
                        path=name,
                    )
                ]
            )
            raise typer.Exit(code=2)

        if method.is_explicit:
            used = "explicit"
        else:
            used = strategy.strip().lower() if strategy else method.strategy
        entry: dict[str, Any] = {
            "name": name,
            "strategy": used,
            "case_count": len(cases),
            "cases": [_case_item(c) for c in cases],
        }
        if not method.is_explicit:
            entry["coverage"] = coverage_stats(method.slots, cases).as_dict()
        results.append(entry)
        cases_by_name[name] = cases

    if out is not None:
        _write_yaml(out, {"schema_version": suite.schema_version, "tests": results})
        typer.echo(f"OK: wrote {sum(r['case_count'] for r in results)} case(s) to {out}")
        return

    if format == "json":
        payload = {
            "tool": "case-expander",
            "command": "expand",
            "schema_version": suite.schema_version,
            "ok": True,
            "tests": results,
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True, default=str))
        return

    if format == "table":
        for r in results:
            name = r["name"]
            console.print(_case_table(r, suite.methods_by_name[name], cases_by_name[name]))
        return

    for r in results:
        name = r["name"]
        typer.echo(f"{name} ({r['strategy']}, {r['case_count']} case(s))")
        for i, case in enumerate(cases_by_name[name]):
            args = ", ".join(_render(v) for v in case.values)
            line = f"  [{i}] ({args})"
            if case.has_expected:
                line += f" -> {case.expected!r}"
            typer.echo(line)


def _bounded_cases(
    expansion: Sequence[TestCase] | Expansion, limit: int
) -> tuple[Optional[list[TestCase]], str]:
    """Materialize the cases unless there are more than `limit` of them.

    Returns (cases, size). Cases is None when the limit is exceeded; size then
    describes how many cases the expansion would have produced.
    """
    if isinstance(expansion, Expansion):
        if expansion.strategy == "pairwise":
            # each value pair of the two widest slots needs its own row
            widths = sorted((len(s.values) for s in expansion.slots), reverse=True)
            floor = widths[0] * widths[1] if len(widths) > 1 else widths[0]
            if floor > limit:
                return None, f"at least {floor}"
        elif len(expansion) > limit:
            return None, str(len(expansion))

    cases = list(islice(expansion, limit + 1))
    if len(cases) > limit:
        return None, f"more than {limit}"
    return cases, str(len(cases))


def _case_item(case: TestCase) -> dict[str, Any]:
    # MISSING markers serialize as null plus an explicit list of slot indices.
    item: dict[str, Any] = {"args": [None if is_missing(v) else v for v in case.values]}
    missing = [v.slot_index for v in case.values if is_missing(v)]
    if missing:
        item["missing_slots"] = missing
    if case.has_expected:
        item["expected"] = case.expected
    return item


def _render(v: Any) -> str:
    return "MISSING" if is_missing(v) else repr(v)


def _case_table(result: dict[str, Any], method: MethodDeclaration, cases: list[TestCase]) -> Table:
    table = Table(title=f"{result['name']} ({result['strategy']})")
    table.add_column("#")
    if method.is_explicit:
        headers = [f"arg{i}" for i in range(len(method.cases[0].values))]
    else:
        headers = [s.label for s in method.slots]
    for h in headers:
        table.add_column(h)
    has_expected = any(c.has_expected for c in cases)
    if has_expected:
        table.add_column("expected")

    for i, case in enumerate(cases):
        row = [str(i)] + [_render(v) for v in case.values]
        if has_expected:
            row.append(repr(case.expected))
        table.add_row(*row)
    return table


def _method_summary(method: MethodDeclaration) -> dict[str, Any]:
    if method.is_explicit:
        return {"strategy": "explicit", "case_count": len(method.cases)}
    return {
        "strategy": method.strategy,
        "strict": method.strict,
        "slot_lengths": [len(s.values) for s in method.slots],
    }


def _load_settings_or_exit(settings_file: Optional[str], *, file: Optional[str]) -> ExpanderSettings:
    try:
        return load_and_merge(settings_file)
    except FileNotFoundError:
        _print_errors(
            [
                SuiteLoadError(
                    code="E_SETTINGS_FILE_NOT_FOUND",
                    message=f"settings file not found: {settings_file}",
                    file=file,
                    path="settings",
                )
            ]
        )
        raise typer.Exit(code=1)
    except SettingsConfigError as e:
        _print_errors(
            [
                SuiteValidationError(
                    code="E_SETTINGS_INVALID",
                    message=str(e),
                    file=file,
                    path="settings",
                )
            ]
        )
        raise typer.Exit(code=2)


def _unknown_format(code: str, format: str, choices: tuple[str, ...]) -> SuiteValidationError:
    return SuiteValidationError(
        code=code,
        message=f"unknown format: {format} (choose one of: {', '.join(choices)})",
        file=None,
        path="format",
    )


def _to_item(e: ExpanderError) -> dict[str, Any]:
    if isinstance(e, SuiteLoadError):
        source = "load"
    elif e.code.startswith("L_"):
        source = "lint"
    else:
        source = "validate"
    return {
        "code": e.code,
        "message": e.message,
        "file": e.file,
        "path": e.path,
        "severity": "error",
        "source": source,
    }


def _emit_json(
    command: str,
    ok: bool,
    *,
    exit_code: int,
    errors: list[Any],
    summary: Optional[dict[str, Any]],
) -> None:
    payload: dict[str, Any] = {
        "tool": "case-expander",
        "command": command,
        "suite_format": SUITE_FORMAT_VERSION,
        "ok": ok,
        "error_count": len(errors),
        "errors": [_to_item(e) for e in errors],
    }
    if command == "validate":
        payload["summary"] = summary
    typer.echo(json.dumps(payload, indent=2, sort_keys=True, default=str))
    raise typer.Exit(code=exit_code)


def _write_yaml(path: str, data: dict[str, Any]) -> None:
    p = Path(path)
    if str(p.parent) not in (".", ""):
        p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False, default_flow_style=False, allow_unicode=True)


def _print_errors(errors: list[Any]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="case-expander")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
