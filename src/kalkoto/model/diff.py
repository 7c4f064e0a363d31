"""Variant minus baseline, household by household."""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pandas as pd

from kalkoto.errors import SimulationError

Results = List[Dict[str, float]]
DiffResults = List[Dict[str, Optional[float]]]


def compute_diff(results_baseline: Sequence[Dict[str, float]], results_variante: Sequence[Dict[str, float]]) -> DiffResults:
    """Return ``variante - baseline`` for every component of the variant rows.

    A component absent from the baseline row gets ``None``.  Components only
    present in the baseline are not reported.
    """
    if len(results_baseline) != len(results_variante):
        raise SimulationError(
            f"Baseline and variant results cover {len(results_baseline)} and "
            f"{len(results_variante)} households"
        )

    diff: DiffResults = []
    for baseline_row, variante_row in zip(results_baseline, results_variante):
        row: Dict[str, Optional[float]] = {}
        for name, variante_value in variante_row.items():
            baseline_value = baseline_row.get(name)
            row[name] = None if baseline_value is None else variante_value - baseline_value
        diff.append(row)
    return diff


def summarize_results(results: Sequence[Dict[str, Optional[float]]], columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """Per-component count, sum, mean, min and max, ignoring missing values."""
    frame = pd.DataFrame.from_records(list(results), columns=list(columns) if columns else None)
    frame = frame.apply(pd.to_numeric, errors="coerce")
    return pd.DataFrame(
        {
            "count": frame.count(),
            "sum": frame.sum(),
            "mean": frame.mean(),
            "min": frame.min(),
            "max": frame.max(),
        }
    )


__all__ = ["Results", "DiffResults", "compute_diff", "summarize_results"]
