from __future__ import annotations

from typing import Any, Optional, cast

from case_expander.core.errors import ConfigurationError, SuiteValidationError
from case_expander.core.expand.expand_cases import check_slots, normalize_strategy
from case_expander.core.expand.strategy_config import DEFAULT_SETTINGS, ExpanderSettings
from case_expander.core.model import (
    MethodDeclaration,
    ParameterSlot,
    ParameterSource,
    SuiteDefinition,
    TestCase,
    expected_case,
)
from case_expander.core.sources import bool_values, random_values, value_range


SOURCE_KINDS: tuple[str, ...] = ("values", "range", "random", "bool")


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def validate_suite(
    suite: dict[str, Any],
    settings: ExpanderSettings = DEFAULT_SETTINGS,
) -> tuple[Optional[SuiteDefinition], list[SuiteValidationError]]:
    """Validate a loaded suite and build its method declarations.

    Returns (suite, errors). Suite is None when errors exist.
    Expansion configuration is checked here too, so a suite that validates
    can be expanded without raising.
    """

    file = cast(Optional[str], suite.get("__file__"))
    errors: list[SuiteValidationError] = []

    schema_version = suite.get("schema_version")
    if not isinstance(schema_version, str) or not schema_version.strip():
        errors.append(
            SuiteValidationError(
                code="E_REQUIRED_FIELD",
                message="schema_version is required and must be a non-empty string",
                file=file,
                path="schema_version",
            )
        )

    tests = suite.get("tests")
    if not isinstance(tests, list) or not tests:
        errors.append(
            SuiteValidationError(
                code="E_REQUIRED_FIELD",
                message="tests is required and must be a non-empty array",
                file=file,
                path="tests",
            )
        )
        return None, _sorted(errors)

    methods_by_name: dict[str, MethodDeclaration] = {}
    order: list[str] = []
    seen_names: set[str] = set()

    for i, raw in enumerate(tests):
        test_path = f"tests[{i}]"
        if not isinstance(raw, dict):
            errors.append(
                SuiteValidationError(
                    code="E_INVALID_TYPE",
                    message="test must be an object",
                    file=file,
                    path=test_path,
                )
            )
            continue

        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.append(
                SuiteValidationError(
                    code="E_REQUIRED_FIELD",
                    message="name is required and must be a non-empty string",
                    file=file,
                    path=f"{test_path}.name",
                )
            )
            continue
        name = name.strip()

        if name in seen_names:
            errors.append(
                SuiteValidationError(
                    code="E_DUPLICATE_TEST",
                    message=f"duplicate test name: {name}",
                    file=file,
                    path=f"{test_path}.name",
                )
            )
            continue
        seen_names.add(name)

        strategy = raw.get("strategy", settings.default_strategy)
        if not isinstance(strategy, str):
            errors.append(
                SuiteValidationError(
                    code="E_INVALID_TYPE",
                    message="strategy must be a string",
                    file=file,
                    path=f"{test_path}.strategy",
                )
            )
            continue

        strict = raw.get("strict", settings.strict_sequential)
        if not isinstance(strict, bool):
            errors.append(
                SuiteValidationError(
                    code="E_INVALID_TYPE",
                    message="strict must be a boolean",
                    file=file,
                    path=f"{test_path}.strict",
                )
            )
            continue

        has_params = "parameters" in raw
        has_cases = "cases" in raw
        if has_params == has_cases:
            errors.append(
                SuiteValidationError(
                    code="E_CONFLICTING_FIELDS" if has_params else "E_REQUIRED_FIELD",
                    message="test must declare exactly one of: parameters, cases",
                    file=file,
                    path=test_path,
                )
            )
            continue

        if has_cases:
            cases, case_errors = _build_cases(raw.get("cases"), file=file, path=f"{test_path}.cases")
            if case_errors:
                errors.extend(case_errors)
                continue
            methods_by_name[name] = MethodDeclaration(
                name=name,
                strategy=normalize_strategy(strategy),
                strict=strict,
                cases=tuple(cases),
            )
            order.append(name)
            continue

        slots, slot_errors = _build_slots(
            raw.get("parameters"), file=file, path=f"{test_path}.parameters"
        )
        if slot_errors:
            errors.extend(slot_errors)
            continue

        config_errors = check_slots(slots, strategy, strict=strict)
        if config_errors:
            errors.extend(_from_config(e, file=file, test_path=test_path) for e in config_errors)
            continue

        methods_by_name[name] = MethodDeclaration(
            name=name,
            strategy=normalize_strategy(strategy),
            strict=strict,
            slots=tuple(slots),
        )
        order.append(name)

    if errors:
        return None, _sorted(errors)

    return (
        SuiteDefinition(
            schema_version=cast(str, schema_version),
            methods_by_name=methods_by_name,
            order=order,
        ),
        [],
    )


def summarize_suite(suite: SuiteDefinition) -> str:
    lines = [f"OK: schema_version={suite.schema_version} tests={len(suite.order)}"]
    for name in suite.order:
        m = suite.methods_by_name[name]
        if m.is_explicit:
            lines.append(f"- {name}: explicit, cases={len(m.cases)}")
        else:
            shape = "x".join(str(len(s.values)) for s in m.slots)
            lines.append(f"- {name}: {m.strategy}, slots={shape}")
    return "\n".join(lines)


def _build_slots(
    raw: Any, *, file: Optional[str], path: str
) -> tuple[list[ParameterSlot], list[SuiteValidationError]]:
    errors: list[SuiteValidationError] = []
    slots: list[ParameterSlot] = []

    if not isinstance(raw, list):
        errors.append(
            SuiteValidationError(
                code="E_INVALID_TYPE",
                message="parameters must be an array",
                file=file,
                path=path,
            )
        )
        return slots, errors

    for p_idx, param in enumerate(raw):
        p_path = f"{path}[{p_idx}]"
        if not isinstance(param, dict):
            errors.append(
                SuiteValidationError(
                    code="E_INVALID_TYPE",
                    message="parameter must be an object",
                    file=file,
                    path=p_path,
                )
            )
            continue

        pname = param.get("name")
        if pname is not None and not isinstance(pname, str):
            errors.append(
                SuiteValidationError(
                    code="E_INVALID_TYPE",
                    message="parameter name must be a string",
                    file=file,
                    path=f"{p_path}.name",
                )
            )
            continue

        raw_sources = param.get("sources")
        if not isinstance(raw_sources, list):
            errors.append(
                SuiteValidationError(
                    code="E_REQUIRED_FIELD",
                    message="sources is required and must be an array",
                    file=file,
                    path=f"{p_path}.sources",
                )
            )
            continue

        sources: list[ParameterSource] = []
        for s_idx, raw_src in enumerate(raw_sources):
            src, err = _build_source(raw_src, file=file, path=f"{p_path}.sources[{s_idx}]")
            if err is not None:
                errors.append(err)
            elif src is not None:
                sources.append(src)

        slots.append(ParameterSlot(index=p_idx, sources=tuple(sources), name=pname))

    return slots, errors


def _build_source(
    raw: Any, *, file: Optional[str], path: str
) -> tuple[Optional[ParameterSource], Optional[SuiteValidationError]]:
    if not isinstance(raw, dict) or len(raw) != 1:
        return None, SuiteValidationError(
            code="E_INVALID_TYPE",
            message=f"source must be an object with exactly one of: {', '.join(SOURCE_KINDS)}",
            file=file,
            path=path,
        )

    kind, spec = next(iter(raw.items()))
    try:
        if kind == "values":
            if not isinstance(spec, list):
                raise _TypeProblem("values must be an array")
            return ParameterSource(values=tuple(spec), label="values"), None

        if kind == "range":
            if not isinstance(spec, dict):
                raise _TypeProblem("range must be an object with start, stop, step")
            start, stop, step = spec.get("start"), spec.get("stop"), spec.get("step", 1)
            if not (_is_number(start) and _is_number(stop) and _is_number(step)):
                raise _TypeProblem("range start, stop and step must be numbers")
            return value_range(start, stop, step), None

        if kind == "random":
            if not isinstance(spec, dict):
                raise _TypeProblem("random must be an object with count, min, max")
            count, low, high = spec.get("count"), spec.get("min"), spec.get("max")
            seed = spec.get("seed", 0)
            if not isinstance(count, int) or isinstance(count, bool):
                raise _TypeProblem("random count must be an integer")
            if not (_is_number(low) and _is_number(high)):
                raise _TypeProblem("random min and max must be numbers")
            if not isinstance(seed, int) or isinstance(seed, bool):
                raise _TypeProblem("random seed must be an integer")
            return random_values(count, low, high, seed=seed), None

        if kind == "bool":
            if spec is not True:
                raise _TypeProblem("bool source must be written as `bool: true`")
            return bool_values(), None

    except _TypeProblem as e:
        return None, SuiteValidationError(
            code="E_INVALID_TYPE", message=str(e), file=file, path=f"{path}.{kind}"
        )
    except ConfigurationError as e:
        return None, e.in_suite(file=file, path=f"{path}.{kind}")

    return None, SuiteValidationError(
        code="E_UNKNOWN_SOURCE_KIND",
        message=f"unknown source kind: {kind} (choose one of: {', '.join(SOURCE_KINDS)})",
        file=file,
        path=f"{path}.{kind}",
    )


def _build_cases(
    raw: Any, *, file: Optional[str], path: str
) -> tuple[list[TestCase], list[SuiteValidationError]]:
    errors: list[SuiteValidationError] = []
    cases: list[TestCase] = []

    if not isinstance(raw, list) or not raw:
        errors.append(
            SuiteValidationError(
                code="E_REQUIRED_FIELD",
                message="cases must be a non-empty array",
                file=file,
                path=path,
            )
        )
        return cases, errors

    arity: Optional[int] = None
    for c_idx, row in enumerate(raw):
        c_path = f"{path}[{c_idx}]"
        if not isinstance(row, dict) or not isinstance(row.get("args"), list):
            errors.append(
                SuiteValidationError(
                    code="E_INVALID_TYPE",
                    message="case must be an object with an args array",
                    file=file,
                    path=c_path,
                )
            )
            continue

        args = tuple(row["args"])
        if arity is None:
            arity = len(args)
        elif len(args) != arity:
            errors.append(
                SuiteValidationError(
                    code="E_CASE_ARITY",
                    message=f"case has {len(args)} args, expected {arity}",
                    file=file,
                    path=f"{c_path}.args",
                )
            )
            continue

        if "expected" in row:
            cases.append(expected_case(args, row["expected"]))
        else:
            cases.append(TestCase(values=args))

    return cases, errors


def _from_config(e: ConfigurationError, *, file: Optional[str], test_path: str) -> SuiteValidationError:
    sub = e.path or ""
    if sub.startswith("slots"):
        sub = "parameters" + sub[len("slots"):]
    return e.in_suite(file=file, path=f"{test_path}.{sub}" if sub else test_path)


class _TypeProblem(Exception):
    pass


def _sorted(errors: list[SuiteValidationError]) -> list[SuiteValidationError]:
    return sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
