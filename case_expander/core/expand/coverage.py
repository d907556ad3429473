from __future__ import annotations

from dataclasses import dataclass
from math import prod
from typing import Any, Iterable, Sequence

from case_expander.core.expand.pairwise import Pair, all_pairs
from case_expander.core.model import ParameterSlot, TestCase


@dataclass(frozen=True)
class CoverageStats:
    case_count: int
    combinatorial_size: int
    pair_count: int
    covered_pairs: int

    @property
    def ratio(self) -> float:
        if self.pair_count == 0:
            return 1.0
        return self.covered_pairs / self.pair_count

    def as_dict(self) -> dict[str, Any]:
        return {
            "case_count": self.case_count,
            "combinatorial_size": self.combinatorial_size,
            "pair_count": self.pair_count,
            "covered_pairs": self.covered_pairs,
            "pair_coverage": round(self.ratio, 4),
        }


def required_pairs(slots: Sequence[ParameterSlot]) -> list[Pair]:
    return all_pairs([len(s.values) for s in slots])


def uncovered_pairs(slots: Sequence[ParameterSlot], cases: Iterable[TestCase]) -> list[Pair]:
    """Pairs (as value indices) that no case hits.

    Values are matched by position within their slot using equality, so
    duplicate values in a slot count as covered together.
    """
    slot_values = [s.values for s in slots]
    seen: set[Pair] = set()
    for case in cases:
        idx = [_positions(slot_values[i], v) for i, v in enumerate(case.values)]
        for i in range(len(idx)):
            for j in range(i + 1, len(idx)):
                for vi in idx[i]:
                    for vj in idx[j]:
                        seen.add((i, vi, j, vj))
    return [p for p in required_pairs(slots) if p not in seen]


def coverage_stats(slots: Sequence[ParameterSlot], cases: Sequence[TestCase]) -> CoverageStats:
    pairs = required_pairs(slots)
    missing = uncovered_pairs(slots, cases)
    return CoverageStats(
        case_count=len(cases),
        combinatorial_size=prod(len(s.values) for s in slots),
        pair_count=len(pairs),
        covered_pairs=len(pairs) - len(missing),
    )


def _positions(values: tuple[Any, ...], v: Any) -> list[int]:
    return [k for k, x in enumerate(values) if x is v or x == v]
