from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Literal, Optional

from case_expander.core.model import TestCase

logger = logging.getLogger(__name__)


Outcome = Literal["passed", "failed", "error", "skipped"]
MissingPolicy = Literal["error", "skip", "call"]


@dataclass(frozen=True)
class CaseResult:
    index: int
    case: TestCase
    outcome: Outcome
    message: Optional[str] = None
    code: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome in ("passed", "skipped")

    def describe(self, name: str) -> str:
        line = f"[{self.index}] {self.case.describe(name)}: {self.outcome}"
        if self.code:
            line += f" {self.code}"
        if self.message:
            line += f": {self.message}"
        return line


@dataclass(frozen=True)
class RunReport:
    name: str
    results: list[CaseResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def failures(self) -> list[CaseResult]:
        return [r for r in self.results if not r.ok]

    @property
    def counts(self) -> dict[str, int]:
        c = Counter(r.outcome for r in self.results)
        return {k: int(c.get(k, 0)) for k in ("passed", "failed", "error", "skipped")}

    def summary(self) -> str:
        c = self.counts
        return (
            f"{self.name}: {len(self.results)} case(s), passed={c['passed']} "
            f"failed={c['failed']} error={c['error']} skipped={c['skipped']}"
        )


def run_cases(
    fn: Callable[..., Any],
    cases: Iterable[TestCase],
    *,
    missing: MissingPolicy = "error",
    name: Optional[str] = None,
) -> RunReport:
    """Invoke fn once per case and collect every outcome.

    Cases are independent: an assertion or exception in case k is recorded and
    case k+1 still runs. When a case carries an expected value, fn's return
    value must equal it.

    Cases holding a MISSING marker are reported as E_MISSING_VALUE errors
    without calling fn (missing="error"), skipped (missing="skip"), or passed
    through to fn unchanged (missing="call").
    """

    if missing not in ("error", "skip", "call"):
        raise ValueError(f"unknown missing policy: {missing} (choose one of: error, skip, call)")

    label = name or getattr(fn, "__name__", "case")
    results: list[CaseResult] = []

    for idx, case in enumerate(cases):
        if case.has_missing and missing != "call":
            if missing == "skip":
                results.append(CaseResult(index=idx, case=case, outcome="skipped", code="E_MISSING_VALUE"))
            else:
                results.append(
                    CaseResult(
                        index=idx,
                        case=case,
                        outcome="error",
                        code="E_MISSING_VALUE",
                        message="case has no value for one or more parameters",
                    )
                )
            continue

        try:
            got = fn(*case.values)
        except AssertionError as e:
            results.append(CaseResult(index=idx, case=case, outcome="failed", message=str(e) or "assertion failed"))
            continue
        except Exception as e:
            results.append(
                CaseResult(index=idx, case=case, outcome="error", message=f"{type(e).__name__}: {e}")
            )
            continue

        if case.has_expected and got != case.expected:
            results.append(
                CaseResult(
                    index=idx,
                    case=case,
                    outcome="failed",
                    message=f"expected {case.expected!r}, got {got!r}",
                )
            )
            continue

        results.append(CaseResult(index=idx, case=case, outcome="passed"))

    report = RunReport(name=label, results=results)
    logger.debug("%s", report.summary())
    return report
