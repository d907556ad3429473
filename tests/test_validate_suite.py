from case_expander.core.expand.expand_cases import expand_method
from case_expander.core.expand.strategy_config import ExpanderSettings
from case_expander.core.io.load_suite import load_suite
from case_expander.core.model import MISSING
from case_expander.core.validate.validate_suite import summarize_suite, validate_suite


def test_validate_happy_path():
    suite, errors = validate_suite(load_suite("examples/basic-suite.yaml"))
    assert errors == []
    assert suite is not None
    assert suite.order == ["single", "grid", "zipped", "pairs", "add"]
    assert suite.methods_by_name["single"].strategy == "combinatorial"
    assert suite.methods_by_name["pairs"].strategy == "pairwise"
    assert suite.methods_by_name["add"].is_explicit


def test_validated_methods_expand():
    suite, _ = validate_suite(load_suite("examples/basic-suite.yaml"))
    assert suite is not None

    zipped = list(expand_method(suite.methods_by_name["zipped"]))
    assert zipped[2].values == ("c", MISSING(1), MISSING(2))

    add = list(expand_method(suite.methods_by_name["add"]))
    assert [(c.values, c.expected) for c in add] == [((1, 2), 3), ((4, 5), 9)]
    assert all(c.has_expected for c in add)

    grid = expand_method(suite.methods_by_name["grid"], strategy="sequential")
    assert [c.values for c in grid] == [("n", "y"), ("p", "z")]


def test_mixed_sources_are_built_in_order():
    suite, errors = validate_suite(load_suite("examples/mixed-sources.yaml"))
    assert errors == []
    assert suite is not None
    count, flag, noise = suite.methods_by_name["mixed"].slots
    assert count.values == (0, 10, 11, 12)
    assert count.name == "count"
    assert flag.values == (False, True)
    assert len(noise.values) == 2


def test_float_range_source_reaches_stop():
    suite, errors = validate_suite(
        {
            "schema_version": "0.1.0",
            "tests": [
                {"name": "ratio", "parameters": [{"sources": [{"range": {"start": 0, "stop": 0.3, "step": 0.1}}]}]}
            ],
        }
    )
    assert errors == []
    assert suite is not None
    assert len(suite.methods_by_name["ratio"].slots[0].values) == 4


def test_settings_supply_default_strategy():
    suite, errors = validate_suite(
        load_suite("examples/basic-suite.yaml"),
        ExpanderSettings(default_strategy="pairwise"),
    )
    assert errors == []
    assert suite is not None
    assert suite.methods_by_name["single"].strategy == "pairwise"
    assert suite.methods_by_name["grid"].strategy == "combinatorial"


def test_empty_source_is_a_validation_error():
    suite, errors = validate_suite(load_suite("examples/invalid-empty-source.yaml"))
    assert suite is None
    assert [(e.code, e.path) for e in errors] == [
        ("E_EMPTY_SOURCE", "tests[0].parameters[1].sources[0]")
    ]
    assert errors[0].file == "examples/invalid-empty-source.yaml"


def test_invalid_shapes_are_all_reported():
    suite, errors = validate_suite(load_suite("examples/invalid-shape.yaml"))
    assert suite is None
    got = {(e.code, e.path) for e in errors}
    assert ("E_UNKNOWN_STRATEGY", "tests[0].strategy") in got
    assert ("E_UNKNOWN_SOURCE_KIND", "tests[1].parameters[0].sources[0].members") in got
    assert ("E_INVALID_RANGE", "tests[2].parameters[0].sources[0].range") in got
    assert ("E_CASE_ARITY", "tests[3].cases[1].args") in got
    assert ("E_DUPLICATE_TEST", "tests[4].name") in got


def test_strict_sequential_arity_is_reported():
    suite, errors = validate_suite(load_suite("examples/strict-sequential.yaml"))
    assert suite is None
    assert [(e.code, e.path) for e in errors] == [("E_SEQUENTIAL_ARITY", "tests[0].parameters")]


def test_missing_tests_and_schema():
    suite, errors = validate_suite({"schema_version": None, "tests": None})
    assert suite is None
    assert {e.path for e in errors} == {"schema_version", "tests"}


def test_parameters_and_cases_are_exclusive():
    raw = {
        "schema_version": "0.1.0",
        "tests": [
            {"name": "both", "parameters": [], "cases": []},
            {"name": "neither"},
        ],
    }
    suite, errors = validate_suite(raw)
    assert suite is None
    assert {(e.code, e.path) for e in errors} == {
        ("E_CONFLICTING_FIELDS", "tests[0]"),
        ("E_REQUIRED_FIELD", "tests[1]"),
    }


def test_source_type_problems():
    raw = {
        "schema_version": "0.1.0",
        "tests": [
            {
                "name": "t",
                "parameters": [
                    {"sources": [{"values": "abc"}]},
                    {"sources": [{"range": {"start": "a", "stop": 2}}]},
                    {"sources": [{"bool": False}]},
                    {"sources": [{"values": [1], "bool": True}]},
                ],
            }
        ],
    }
    suite, errors = validate_suite(raw)
    assert suite is None
    assert {e.path for e in errors} == {
        "tests[0].parameters[0].sources[0].values",
        "tests[0].parameters[1].sources[0].range",
        "tests[0].parameters[2].sources[0].bool",
        "tests[0].parameters[3].sources[0]",
    }
    assert all(e.code == "E_INVALID_TYPE" for e in errors)


def test_summarize_suite():
    suite, _ = validate_suite(load_suite("examples/basic-suite.yaml"))
    assert suite is not None
    text = summarize_suite(suite)
    assert text.splitlines()[0] == "OK: schema_version=0.1.0 tests=5"
    assert "- pairs: pairwise, slots=3x2x2" in text
    assert "- add: explicit, cases=2" in text
