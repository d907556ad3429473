from itertools import product
from math import prod

import pytest

from case_expander.core.expand.coverage import uncovered_pairs
from case_expander.core.expand.expand_cases import expand
from case_expander.core.model import MISSING
from case_expander.core.sources import slots_from


SHAPES = [(1,), (3,), (2, 2), (1, 1, 1), (3, 2, 2), (2, 2, 2), (5, 1, 4), (4, 3, 2, 2), (3, 3, 3, 3)]


def _slots(shape):
    return slots_from(*[[f"s{i}v{k}" for k in range(n)] for i, n in enumerate(shape)])


@pytest.mark.parametrize("shape", SHAPES, ids=lambda s: "x".join(map(str, s)))
def test_combinatorial_yields_every_combination_once(shape):
    slots = _slots(shape)
    rows = [c.values for c in expand(slots, "combinatorial")]
    assert len(rows) == prod(shape)
    assert rows == list(product(*[s.values for s in slots]))


@pytest.mark.parametrize("shape", SHAPES, ids=lambda s: "x".join(map(str, s)))
def test_sequential_yields_longest_slot_rows(shape):
    slots = _slots(shape)
    rows = [c.values for c in expand(slots, "sequential")]
    assert len(rows) == max(shape)
    for k, row in enumerate(rows):
        for i, s in enumerate(slots):
            want = s.values[k] if k < len(s.values) else MISSING(i)
            assert row[i] == want


@pytest.mark.parametrize("shape", SHAPES, ids=lambda s: "x".join(map(str, s)))
def test_pairwise_covers_all_pairs(shape):
    slots = _slots(shape)
    cases = list(expand(slots, "pairwise"))
    assert uncovered_pairs(slots, cases) == []
    assert len(cases) <= prod(shape)
    if sum(1 for n in shape if n > 1) >= 3:
        assert len(cases) < prod(shape)
