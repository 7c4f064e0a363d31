import pytest

from kalkoto.errors import SimulationError
from kalkoto.model.diff import compute_diff, summarize_results


def test_diff_scenario():
    assert compute_diff([{"rsa": 100.0}], [{"rsa": 120.0}]) == [{"rsa": 20.0}]


def test_diff_is_exact_subtraction():
    baseline = [{"a": 0.1, "b": 1e16}, {"a": 3.3, "b": 2.0}]
    variante = [{"a": 0.3, "b": 1e16 + 2.0}, {"a": 1.1, "b": 2.0}]

    diff = compute_diff(baseline, variante)

    for i in range(2):
        for name in ("a", "b"):
            assert diff[i][name] == variante[i][name] - baseline[i][name]


def test_component_missing_from_baseline_gives_none():
    diff = compute_diff([{"a": 1.0, "old": 3.0}], [{"a": 2.0, "new": 5.0}])

    # baseline-only components are not reported
    assert diff == [{"a": 1.0, "new": None}]


def test_length_mismatch_is_an_error():
    with pytest.raises(SimulationError):
        compute_diff([{"a": 1.0}], [])


def test_summarize_results_ignores_missing_values():
    summary = summarize_results([{"a": 1.0, "b": None}, {"a": 3.0, "b": 4.0}], ["a", "b"])

    assert summary.loc["a", "sum"] == 4.0
    assert summary.loc["a", "mean"] == 2.0
    assert summary.loc["b", "count"] == 1
    assert summary.loc["b", "max"] == 4.0
