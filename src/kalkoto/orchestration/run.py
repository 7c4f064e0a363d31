"""End-to-end run: household file, baseline policy, optional variant, export.

The primary entry point is :func:`run_simulation`, used by
``scripts/run_simulation.py``::

    session = run_simulation(
        "menages.csv",
        "apa_baseline.toml",
        variante_path="apa_reforme.toml",
        prefix="apa",
    )
    session.results_diff[0]   # {"plan_notif": 12.5, ...}
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from kalkoto.config import SimulationSettings
from kalkoto.data_loader.arrow_input_adapter import ARROW_SUFFIXES, ArrowInputAdapter
from kalkoto.data_loader.csv_input_adapter import CsvInputAdapter
from kalkoto.data_loader.output_adapter import ArrowOutputAdapter, CsvOutputAdapter
from kalkoto.data_loader.policy_file_adapter import PolicyFileAdapter
from kalkoto.model.diff import summarize_results
from kalkoto.orchestration.simulator import SimulatorBuilder

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _menage_adapter(menage_path: PathLike, settings: SimulationSettings):
    if Path(menage_path).suffix.lower() in ARROW_SUFFIXES:
        return ArrowInputAdapter().populate_from_path(menage_path)
    return CsvInputAdapter(delimiter=settings.csv_delimiter).populate_from_path(menage_path)


def run_simulation(
    menage_path: PathLike,
    baseline_path: PathLike,
    variante_path: Optional[PathLike] = None,
    *,
    prefix: Optional[str] = None,
    output_dir: Optional[PathLike] = None,
    settings: Optional[SimulationSettings] = None,
    variante_overrides: Optional[Mapping[str, float]] = None,
    export: bool = True,
    cancel_event: Optional[threading.Event] = None,
) -> SimulatorBuilder:
    """Run the baseline (and the variant when given) and export the result tables.

    ``variante_overrides`` replaces parameter values of the variant policy;
    when no variant file is given they are applied to a copy of the baseline.
    """
    settings = settings or SimulationSettings()
    prefix = prefix or settings.output_prefix

    session = SimulatorBuilder(settings=settings)
    if prefix:
        session = session.add_output_prefix(prefix)

    session = session.add_menage_input(_menage_adapter(menage_path, settings))
    session = session.add_valid_baseline_policy(PolicyFileAdapter(baseline_path))
    session = session.simulate_baseline_policy(cancel_event=cancel_event)

    if variante_path is None and variante_overrides:
        variante_path = baseline_path
    if variante_path is not None:
        session = session.add_valid_variante_policy(
            PolicyFileAdapter(variante_path, parameter_overrides=variante_overrides)
        )
        session = session.simulate_variante_policy(cancel_event=cancel_event)

    if export:
        allow_missing = settings.on_error == "skip"
        if settings.output_format == "arrow":
            writer = ArrowOutputAdapter(output_dir=output_dir, allow_missing=allow_missing)
        else:
            writer = CsvOutputAdapter(
                output_dir=output_dir,
                delimiter=settings.csv_delimiter,
                allow_missing=allow_missing,
            )
        writer.export_baseline_results(session)
        if session.results_diff is not None:
            writer.export_variante_results(session)

    return session


def session_summary(session: SimulatorBuilder) -> Dict[str, Any]:
    """JSON-ready overview of a finished session."""
    summary: Dict[str, Any] = {
        "phase": session.phase.value,
        "households": len(session.menage_input) if session.menage_input else 0,
    }
    if session.results_baseline is not None:
        columns = session.policy_baseline.valid_policy.composante_names
        summary["baseline"] = {
            "policy": session.policy_baseline.valid_policy.name,
            "totals": summarize_results(session.results_baseline, columns).to_dict(orient="index"),
        }
    if session.results_diff is not None:
        columns = session.policy_variante.valid_policy.composante_names
        summary["variante"] = {
            "policy": session.policy_variante.valid_policy.name,
            "totals": summarize_results(session.results_variante, columns).to_dict(orient="index"),
        }
        summary["diff"] = {
            "totals": summarize_results(session.results_diff, columns).to_dict(orient="index"),
        }
    return summary


__all__ = ["run_simulation", "session_summary"]
