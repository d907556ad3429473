from __future__ import annotations

from math import prod
from typing import Any, Optional

from case_expander.core.errors import ConfigurationError, SuiteValidationError
from case_expander.core.expand.strategy_config import DEFAULT_SETTINGS, ExpanderSettings
from case_expander.core.sources import value_range


# Suite lint rules. They flag declarations that expand, but probably not the
# way the author meant:
# - L_DUPLICATE_VALUE: a value repeats within one parameter (duplicates are kept, so cases repeat)
# - L_SEQUENTIAL_ARITY_MISMATCH: non-strict sequential parameters of unequal length (MISSING markers)
# - L_PAIRWISE_NO_REDUCTION: pairwise with fewer than three varying parameters (same as combinatorial)
# - L_LARGE_EXPANSION: combinatorial product above settings.max_cases


def lint_suite(
    suite: dict[str, Any],
    settings: ExpanderSettings = DEFAULT_SETTINGS,
) -> list[SuiteValidationError]:
    """Lint a loaded suite.

    Lint runs *in addition to* validation and works best effort on
    partially-invalid input: anything it cannot size is skipped.
    """

    file = suite.get("__file__") if isinstance(suite.get("__file__"), str) else None

    tests = suite.get("tests")
    if not isinstance(tests, list):
        # Let validator handle shape.
        return []

    errors: list[SuiteValidationError] = []

    for i, raw in enumerate(tests):
        if not isinstance(raw, dict):
            continue
        params = raw.get("parameters")
        if not isinstance(params, list):
            continue

        strategy = raw.get("strategy", settings.default_strategy)
        strategy = strategy.strip().lower() if isinstance(strategy, str) else None
        strict = raw.get("strict", settings.strict_sequential) is True

        lengths: list[Optional[int]] = []
        for p_idx, param in enumerate(params):
            if not isinstance(param, dict):
                lengths.append(None)
                continue
            sources = param.get("sources")
            if not isinstance(sources, list):
                lengths.append(None)
                continue

            lengths.append(_slot_len(sources))

            # Rule: duplicate literal values within one parameter
            literal: list[Any] = []
            for src in sources:
                if isinstance(src, dict) and isinstance(src.get("values"), list):
                    literal.extend(src["values"])
            dupes = _duplicates(literal)
            if dupes:
                errors.append(
                    SuiteValidationError(
                        code="L_DUPLICATE_VALUE",
                        message=f"values repeat within parameter: {', '.join(repr(d) for d in dupes)}",
                        file=file,
                        path=f"tests[{i}].parameters[{p_idx}].sources",
                    )
                )

        if not lengths or any(n is None or n == 0 for n in lengths):
            continue
        sizes = [n for n in lengths if n is not None]

        # Rule: sequential with unequal lengths
        if strategy == "sequential" and not strict and len(set(sizes)) > 1:
            errors.append(
                SuiteValidationError(
                    code="L_SEQUENTIAL_ARITY_MISMATCH",
                    message=(
                        f"parameter lengths differ ({', '.join(str(n) for n in sizes)}); "
                        "shorter parameters will yield MISSING markers"
                    ),
                    file=file,
                    path=f"tests[{i}].parameters",
                )
            )

        # Rule: pairwise cannot reduce fewer than three varying parameters
        if strategy == "pairwise" and sum(1 for n in sizes if n > 1) < 3:
            errors.append(
                SuiteValidationError(
                    code="L_PAIRWISE_NO_REDUCTION",
                    message="pairwise needs at least three parameters with more than one value to reduce cases",
                    file=file,
                    path=f"tests[{i}].strategy",
                )
            )

        # Rule: oversized combinatorial expansion
        total = prod(sizes)
        if strategy == "combinatorial" and total > settings.max_cases:
            errors.append(
                SuiteValidationError(
                    code="L_LARGE_EXPANSION",
                    message=f"combinatorial expansion yields {total} cases (max_cases={settings.max_cases})",
                    file=file,
                    path=f"tests[{i}].parameters",
                )
            )

    return errors


def _slot_len(sources: list[Any]) -> Optional[int]:
    total = 0
    for src in sources:
        n = _source_len(src)
        if n is None:
            return None
        total += n
    return total


def _source_len(src: Any) -> Optional[int]:
    if not isinstance(src, dict) or len(src) != 1:
        return None
    kind, spec = next(iter(src.items()))
    if kind == "values" and isinstance(spec, list):
        return len(spec)
    if kind == "bool":
        return 2
    if kind == "random" and isinstance(spec, dict):
        count = spec.get("count")
        return count if isinstance(count, int) and count > 0 else None
    if kind == "range" and isinstance(spec, dict):
        try:
            return len(value_range(spec["start"], spec["stop"], spec.get("step", 1)).values)
        except (KeyError, TypeError, ConfigurationError):
            return None
    return None


def _duplicates(items: list[Any]) -> list[Any]:
    # keyed on type so 1 and True (or 0 and False) stay distinct
    seen: list[tuple[type, Any]] = []
    dupes: list[tuple[type, Any]] = []
    for item in items:
        key = (type(item), item)
        if key in seen:
            if key not in dupes:
                dupes.append(key)
        else:
            seen.append(key)
    return [item for _, item in dupes]
