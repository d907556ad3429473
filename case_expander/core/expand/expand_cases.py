from __future__ import annotations

import logging
from math import prod
from typing import Any, Iterator, Sequence

from case_expander.core.errors import ConfigurationError
from case_expander.core.expand.pairwise import pairwise_indices
from case_expander.core.model import (
    MISSING,
    STRATEGIES,
    ExpansionStrategy,
    MethodDeclaration,
    ParameterSlot,
    TestCase,
)

logger = logging.getLogger(__name__)


def normalize_strategy(strategy: str) -> str:
    return strategy.strip().lower() if isinstance(strategy, str) else strategy


def check_slots(
    slots: Sequence[ParameterSlot],
    strategy: str = "combinatorial",
    *,
    strict: bool = False,
) -> list[ConfigurationError]:
    """Return every configuration problem, in detection order. Empty list means expandable."""

    errors: list[ConfigurationError] = []

    if not slots:
        errors.append(
            ConfigurationError(
                code="E_NO_SLOTS",
                message="at least one parameter slot is required",
                path="slots",
            )
        )

    for pos, s in enumerate(slots):
        if s.index != pos:
            errors.append(
                ConfigurationError(
                    code="E_SLOT_INDEX",
                    message=f"slot at position {pos} declares index {s.index}; indices must be 0..n-1 in order",
                    path=f"slots[{pos}].index",
                )
            )
        if not s.sources:
            errors.append(
                ConfigurationError(
                    code="E_EMPTY_SLOT",
                    message=f"{s.label} has no value sources",
                    path=f"slots[{pos}].sources",
                )
            )
            continue
        for k, src in enumerate(s.sources):
            if len(src.values) == 0:
                errors.append(
                    ConfigurationError(
                        code="E_EMPTY_SOURCE",
                        message=f"{s.label} source {src.label or k} produced no values",
                        path=f"slots[{pos}].sources[{k}]",
                    )
                )

    norm = normalize_strategy(strategy)
    if norm not in STRATEGIES:
        errors.append(
            ConfigurationError(
                code="E_UNKNOWN_STRATEGY",
                message=f"unknown strategy: {strategy!r} (choose one of: {', '.join(STRATEGIES)})",
                path="strategy",
            )
        )
    elif norm == "sequential" and strict and slots:
        lengths = {len(s.values) for s in slots}
        if len(lengths) > 1:
            detail = ", ".join(f"{s.label}={len(s.values)}" for s in slots)
            errors.append(
                ConfigurationError(
                    code="E_SEQUENTIAL_ARITY",
                    message=f"strict sequential expansion needs equal slot lengths ({detail})",
                    path="slots",
                )
            )

    return errors


class Expansion:
    """Lazy, finite, restartable sequence of TestCases.

    Each iteration re-runs the strategy from the frozen slot values, so two
    passes over the same Expansion (or two Expansions built from the same
    inputs) yield identical cases in identical order.
    """

    def __init__(self, slots: Sequence[ParameterSlot], strategy: ExpansionStrategy) -> None:
        self.slots: tuple[ParameterSlot, ...] = tuple(slots)
        self.strategy: ExpansionStrategy = strategy
        self._values: tuple[tuple[Any, ...], ...] = tuple(s.values for s in self.slots)

    def __iter__(self) -> Iterator[TestCase]:
        if self.strategy == "combinatorial":
            return _combinatorial(self._values)
        if self.strategy == "sequential":
            return _sequential(self._values)
        return _pairwise(self._values)

    def __len__(self) -> int:
        if self.strategy == "combinatorial":
            return self.combinatorial_size
        if self.strategy == "sequential":
            return max(len(v) for v in self._values)
        return sum(1 for _ in self)

    @property
    def combinatorial_size(self) -> int:
        return prod(len(v) for v in self._values)

    def to_list(self) -> list[TestCase]:
        return list(self)

    def __repr__(self) -> str:
        shape = "x".join(str(len(v)) for v in self._values)
        return f"Expansion(strategy={self.strategy!r}, slots={shape})"


def expand(
    slots: Sequence[ParameterSlot],
    strategy: str = "combinatorial",
    *,
    strict: bool = False,
) -> Expansion:
    """Validate eagerly, then return a lazy Expansion.

    Raises the first ConfigurationError found; nothing is generated in that case.
    `strict` only matters for sequential expansion: unequal slot lengths become
    an error instead of producing missing-value markers.
    """

    errors = check_slots(slots, strategy, strict=strict)
    if errors:
        logger.debug("expansion rejected: %s", "; ".join(str(e) for e in errors))
        raise errors[0]

    norm = normalize_strategy(strategy)
    expansion = Expansion(slots, norm)  # type: ignore[arg-type]
    logger.debug(
        "expanding %d slot(s) with strategy=%s (combinatorial size %d)",
        len(expansion.slots),
        norm,
        expansion.combinatorial_size,
    )
    return expansion


def _combinatorial(values: tuple[tuple[Any, ...], ...]) -> Iterator[TestCase]:
    # Mixed-radix odometer; the rightmost slot varies fastest.
    radices = [len(v) for v in values]
    digits = [0] * len(radices)
    while True:
        yield TestCase(values=tuple(values[i][d] for i, d in enumerate(digits)))
        pos = len(digits) - 1
        while pos >= 0:
            digits[pos] += 1
            if digits[pos] < radices[pos]:
                break
            digits[pos] = 0
            pos -= 1
        if pos < 0:
            return


def _sequential(values: tuple[tuple[Any, ...], ...]) -> Iterator[TestCase]:
    longest = max(len(v) for v in values)
    for k in range(longest):
        yield TestCase(
            values=tuple(v[k] if k < len(v) else MISSING(i) for i, v in enumerate(values))
        )


def _pairwise(values: tuple[tuple[Any, ...], ...]) -> Iterator[TestCase]:
    for row in pairwise_indices([len(v) for v in values]):
        yield TestCase(values=tuple(values[i][d] for i, d in enumerate(row)))


def expand_method(method: MethodDeclaration, *, strategy: str | None = None) -> Sequence[TestCase] | Expansion:
    """Cases for one declared method: its explicit rows, or its slots expanded.

    `strategy` overrides the declared one for slot-based methods.
    """
    if method.is_explicit:
        return method.cases
    return expand(method.slots, strategy or method.strategy, strict=method.strict)
