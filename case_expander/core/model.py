from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional


ExpansionStrategy = Literal["combinatorial", "sequential", "pairwise"]

STRATEGIES: tuple[str, ...] = ("combinatorial", "sequential", "pairwise")


@dataclass(frozen=True)
class MissingValueSentinel:
    """Stands in for a value a shorter slot does not have (sequential expansion).

    Harnesses should treat it as a misconfiguration signal, never as a default.
    """

    slot_index: int

    def __repr__(self) -> str:
        return f"MISSING(slot={self.slot_index})"


def MISSING(slot_index: int) -> MissingValueSentinel:
    return MissingValueSentinel(slot_index)


def is_missing(value: Any) -> bool:
    return isinstance(value, MissingValueSentinel)


@dataclass(frozen=True)
class ParameterSource:
    values: tuple[Any, ...]
    label: Optional[str] = None

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class ParameterSlot:
    index: int
    sources: tuple[ParameterSource, ...]
    name: Optional[str] = None

    @property
    def values(self) -> tuple[Any, ...]:
        """Concatenation of all sources in attachment order (duplicates kept)."""
        out: list[Any] = []
        for src in self.sources:
            out.extend(src.values)
        return tuple(out)

    @property
    def label(self) -> str:
        return self.name or f"slot[{self.index}]"


class _NoExpected:
    def __repr__(self) -> str:
        return "<no expected value>"


NO_EXPECTED = _NoExpected()


@dataclass(frozen=True)
class TestCase:
    values: tuple[Any, ...]
    expected: Any = NO_EXPECTED  # None is a legitimate expected result

    __test__ = False  # not a pytest class

    @property
    def has_expected(self) -> bool:
        return self.expected is not NO_EXPECTED

    def describe(self, name: str = "case") -> str:
        args = ", ".join(repr(v) for v in self.values)
        return f"{name}({args})"

    @property
    def has_missing(self) -> bool:
        return any(is_missing(v) for v in self.values)


@dataclass(frozen=True)
class MethodDeclaration:
    """One test method: either expandable slots or explicit literal cases."""

    name: str
    strategy: str
    strict: bool
    slots: tuple[ParameterSlot, ...] = ()
    cases: tuple[TestCase, ...] = ()

    @property
    def is_explicit(self) -> bool:
        return bool(self.cases)


@dataclass(frozen=True)
class SuiteDefinition:
    schema_version: str
    methods_by_name: dict[str, MethodDeclaration]
    order: list[str]  # declaration order of method names


def expected_case(values: tuple[Any, ...], expected: Any) -> TestCase:
    return TestCase(values=tuple(values), expected=expected)
