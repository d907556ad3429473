"""Greedy pairwise (2-way) covering.

Works on value indices only, so slot values never need to be hashable.
A pair is (slot_i, value_i, slot_j, value_j) with slot_i < slot_j.

Each round:
  - walk the uncovered pairs in canonical order and use each as a seed
  - complete a seed slot by slot, picking the value that covers the most
    uncovered pairs against the slots already fixed (ties: lowest index)
  - keep the candidate row covering the most uncovered pairs (ties: earliest seed)

Every round covers at least its seed, so the loop terminates with a full
cover. The result is not guaranteed minimal.
"""
from __future__ import annotations

from typing import Iterator, Optional


Pair = tuple[int, int, int, int]

# Upper bound on seeds tried per round; keeps large inputs tractable.
DEFAULT_MAX_SEEDS = 64


def all_pairs(radices: list[int]) -> list[Pair]:
    """Every cross-slot value pair, ordered by (slot_i, slot_j, value_i, value_j)."""
    out: list[Pair] = []
    n = len(radices)
    for i in range(n):
        for j in range(i + 1, n):
            for vi in range(radices[i]):
                for vj in range(radices[j]):
                    out.append((i, vi, j, vj))
    return out


def row_pairs(row: tuple[int, ...]) -> list[Pair]:
    n = len(row)
    return [(i, row[i], j, row[j]) for i in range(n) for j in range(i + 1, n)]


def pairwise_indices(radices: list[int], *, max_seeds: int = DEFAULT_MAX_SEEDS) -> Iterator[tuple[int, ...]]:
    """Yield index rows whose pairs cover every entry of all_pairs(radices)."""
    n = len(radices)
    if n == 1:
        for v in range(radices[0]):
            yield (v,)
        return

    ordered = all_pairs(radices)
    uncovered = set(ordered)
    best_possible = n * (n - 1) // 2
    cursor = 0

    while uncovered:
        while ordered[cursor] not in uncovered:
            cursor += 1

        best_row: Optional[tuple[int, ...]] = None
        best_gain = -1
        tried = 0
        for k in range(cursor, len(ordered)):
            seed = ordered[k]
            if seed not in uncovered:
                continue
            row = _complete(seed, radices, uncovered)
            gain = sum(1 for p in row_pairs(row) if p in uncovered)
            if gain > best_gain:
                best_row, best_gain = row, gain
            tried += 1
            if best_gain == best_possible or tried >= max_seeds:
                break

        assert best_row is not None
        for p in row_pairs(best_row):
            uncovered.discard(p)
        yield best_row


def _complete(seed: Pair, radices: list[int], uncovered: set[Pair]) -> tuple[int, ...]:
    i, vi, j, vj = seed
    n = len(radices)
    row: list[Optional[int]] = [None] * n
    row[i] = vi
    row[j] = vj

    for k in range(n):
        if row[k] is not None:
            continue
        best_v, best = 0, -1
        for v in range(radices[k]):
            gain = 0
            for m in range(n):
                fixed = row[m]
                if fixed is None:
                    continue
                pair = (m, fixed, k, v) if m < k else (k, v, m, fixed)
                if pair in uncovered:
                    gain += 1
            if gain > best:
                best_v, best = v, gain
        row[k] = best_v

    return tuple(v for v in row if v is not None)
