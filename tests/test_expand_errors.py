import pytest

from case_expander.core.errors import ConfigurationError, SuiteValidationError
from case_expander.core.expand.expand_cases import check_slots, expand
from case_expander.core.model import ParameterSlot
from case_expander.core.sources import slot, slots_from, values


def test_empty_source_fails_before_any_case():
    with pytest.raises(ConfigurationError) as ei:
        expand([slot(0, [1, 2]), slot(1, values())])
    assert ei.value.code == "E_EMPTY_SOURCE"
    assert ei.value.path == "slots[1].sources[0]"
    assert str(ei.value).startswith("slots[1].sources[0]: E_EMPTY_SOURCE:")


def test_empty_source_is_rejected_even_when_slot_has_other_values():
    with pytest.raises(ConfigurationError) as ei:
        expand([slot(0, values(1), values())])
    assert ei.value.code == "E_EMPTY_SOURCE"


def test_slot_without_sources():
    with pytest.raises(ConfigurationError) as ei:
        expand([ParameterSlot(index=0, sources=(), name="a")])
    assert ei.value.code == "E_EMPTY_SLOT"
    assert "a has no value sources" in ei.value.message


def test_no_slots():
    with pytest.raises(ConfigurationError) as ei:
        expand([])
    assert ei.value.code == "E_NO_SLOTS"


def test_unknown_strategy():
    with pytest.raises(ConfigurationError) as ei:
        expand(slots_from([1]), "diagonal")
    assert ei.value.code == "E_UNKNOWN_STRATEGY"
    assert "combinatorial, sequential, pairwise" in ei.value.message


def test_strategy_names_are_case_insensitive():
    e = expand(slots_from([1, 2], [3, 4], [5, 6]), " Pairwise ")
    assert e.strategy == "pairwise"


def test_slot_indices_must_follow_declaration_order():
    with pytest.raises(ConfigurationError) as ei:
        expand([slot(1, [1]), slot(0, [2])])
    assert ei.value.code == "E_SLOT_INDEX"


def test_check_slots_reports_every_problem():
    errors = check_slots([slot(0, values()), slot(1, values())], "nope")
    codes = [e.code for e in errors]
    assert codes == ["E_EMPTY_SOURCE", "E_EMPTY_SOURCE", "E_UNKNOWN_STRATEGY"]


def test_check_slots_clean():
    assert check_slots(slots_from([1], [2]), "sequential", strict=True) == []


def test_unlocated_errors_name_their_layer():
    assert str(ConfigurationError(code="E_NO_SLOTS", message="x")) == "<slots>: E_NO_SLOTS: x"
    assert str(SuiteValidationError(code="E_REQUIRED_FIELD", message="x")) == "<suite>: E_REQUIRED_FIELD: x"


def test_configuration_error_relocates_into_a_suite():
    err = ConfigurationError(code="E_EMPTY_SOURCE", message="empty", path="slots[1]")
    moved = err.in_suite(file="s.yaml", path="tests[0].parameters[1]")
    assert isinstance(moved, SuiteValidationError)
    assert (moved.code, moved.message) == ("E_EMPTY_SOURCE", "empty")
    assert str(moved) == "s.yaml:tests[0].parameters[1]: E_EMPTY_SOURCE: empty"
