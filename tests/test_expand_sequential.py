import pytest

from case_expander.core.errors import ConfigurationError
from case_expander.core.expand.expand_cases import expand
from case_expander.core.model import MISSING, MissingValueSentinel, is_missing
from case_expander.core.sources import slots_from


def test_sequential_pads_shorter_slots_with_missing():
    e = expand(slots_from(["a", "b", "c"], ["n", "p"], ["y", "z"]), "sequential")
    rows = [c.values for c in e]
    assert rows == [
        ("a", "n", "y"),
        ("b", "p", "z"),
        ("c", MISSING(1), MISSING(2)),
    ]
    assert len(e) == 3


def test_missing_marker_names_its_slot_and_never_reuses_values():
    cases = list(expand(slots_from([1, 2, 3, 4], [10]), "sequential"))
    assert [c.values[1] for c in cases] == [10, MISSING(1), MISSING(1), MISSING(1)]
    marker = cases[-1].values[1]
    assert isinstance(marker, MissingValueSentinel)
    assert marker.slot_index == 1
    assert repr(marker) == "MISSING(slot=1)"
    assert is_missing(marker)
    assert not is_missing(None)
    assert cases[-1].has_missing
    assert not cases[0].has_missing


def test_sequential_equal_lengths_has_no_markers():
    cases = list(expand(slots_from([1, 2], ["a", "b"]), "sequential", strict=True))
    assert [c.values for c in cases] == [(1, "a"), (2, "b")]


def test_strict_sequential_rejects_unequal_lengths():
    with pytest.raises(ConfigurationError) as ei:
        expand(slots_from([1, 2, 3], ["a"]), "sequential", strict=True)
    assert ei.value.code == "E_SEQUENTIAL_ARITY"
    assert "slot[0]=3" in ei.value.message


def test_strict_flag_is_ignored_by_other_strategies():
    cases = list(expand(slots_from([1, 2, 3], ["a"]), "combinatorial", strict=True))
    assert len(cases) == 3
