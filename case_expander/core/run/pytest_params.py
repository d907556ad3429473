from __future__ import annotations

from typing import Any, Iterable

import pytest

from case_expander.core.errors import ConfigurationError
from case_expander.core.model import TestCase, is_missing
from case_expander.core.run.run_cases import MissingPolicy


def case_id(case: TestCase) -> str:
    return "-".join("MISSING" if is_missing(v) else repr(v) for v in case.values)


def pytest_params(
    cases: Iterable[TestCase],
    *,
    with_expected: bool = False,
    missing: MissingPolicy = "error",
) -> list[Any]:
    """Turn cases into pytest.param objects for pytest.mark.parametrize.

    Ids are built from the literal values so failures name the inputs. With
    with_expected=True the expected value is appended as a last argument.

    A case holding a MISSING marker raises ConfigurationError at collection
    (missing="error"), is collected as skipped (missing="skip"), or is passed
    through unchanged (missing="call").
    """

    out: list[Any] = []
    for idx, case in enumerate(cases):
        args: tuple[Any, ...] = case.values
        if with_expected:
            args = args + (case.expected if case.has_expected else None,)

        marks: tuple[Any, ...] = ()
        if case.has_missing:
            if missing == "error":
                raise ConfigurationError(
                    code="E_MISSING_VALUE",
                    message=f"case {idx} {case_id(case)} has no value for one or more parameters",
                    path=f"cases[{idx}]",
                )
            if missing == "skip":
                marks = (pytest.mark.skip(reason="case has MISSING values"),)

        out.append(pytest.param(*args, id=case_id(case), marks=marks))
    return out
