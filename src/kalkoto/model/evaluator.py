"""Per-household evaluation of a policy's ordered components.

Each household starts with an empty ``variables`` mapping; components are
evaluated in ``logical_order`` and every result is stored under the
component name before the next one runs, so later components can read the
results of earlier ones.  Households are independent of each other and are
spread over a thread pool.
"""
from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Sequence

import numpy as np

from kalkoto.entities.menage import Menage
from kalkoto.entities.policy import Composante, Policy
from kalkoto.errors import EvaluationError, SimulationCancelledError
from kalkoto.model.rule_executor import PythonRuleExecutor, RuleExecutor

logger = logging.getLogger(__name__)

ON_ERROR_MODES = ("raise", "skip")


def _as_float(value: Any) -> float:
    # anything float() accepts through __float__ (Decimal, Fraction, numpy scalars)
    if not isinstance(value, (str, bytes, complex, np.complexfloating)) and hasattr(type(value), "__float__"):
        return float(value)
    raise TypeError(f"rule returned {type(value).__name__} ({value!r}), expected a number")


def evaluate_one(
    composante: Composante,
    menage: Menage,
    variables: MutableMapping[str, float],
    parameters: Mapping[str, float],
    executor: RuleExecutor,
    characteristics: Optional[Mapping[str, Any]] = None,
) -> float:
    """Run one component rule for one household and return its numeric result.

    ``variables`` holds the results of the components already evaluated for
    this household; the caller stores the returned value in it.
    """
    if characteristics is None:
        characteristics = menage.rule_inputs()
    try:
        raw = executor.evaluate(composante.name, variables, parameters, characteristics)
        return _as_float(raw)
    except Exception as exc:
        raise EvaluationError(composante.name, menage.index, exc) from exc


def evaluate_menage(
    policy: Policy,
    menage: Menage,
    executor: RuleExecutor,
    on_error: str = "raise",
) -> Dict[str, float]:
    params = dict(policy.parameters_values)
    characteristics = menage.rule_inputs()
    variables: Dict[str, float] = {}
    for composante in policy.composantes_ordonnees:
        try:
            variables[composante.name] = evaluate_one(
                composante, menage, variables, params, executor, characteristics
            )
        except EvaluationError as exc:
            if on_error != "skip":
                raise
            logger.warning("%s; value left unset", exc)
    return variables


def evaluate_all(
    policy: Policy,
    menages: Sequence[Menage],
    executor: Optional[RuleExecutor] = None,
    *,
    max_workers: Optional[int] = None,
    on_error: str = "raise",
    cancel_event: Optional[threading.Event] = None,
    serialize: bool = True,
) -> List[Dict[str, float]]:
    """Evaluate ``policy`` for every household; ``result[i]`` matches ``menages[i]``.

    ``on_error="raise"`` aborts on the first failing (household, component)
    pair in household order.  ``on_error="skip"`` logs the failure and leaves
    that component out of the household's results.
    """
    if on_error not in ON_ERROR_MODES:
        raise ValueError(f"on_error must be one of {ON_ERROR_MODES}, got {on_error!r}")
    if executor is None:
        executor = PythonRuleExecutor.for_policy(policy, serialize=serialize)

    workers = max_workers or os.cpu_count() or 1
    workers = max(1, min(workers, len(menages)))

    def _run(menage: Menage) -> Dict[str, float]:
        if cancel_event is not None and cancel_event.is_set():
            raise SimulationCancelledError(f"Simulation of policy '{policy.name}' cancelled")
        return evaluate_menage(policy, menage, executor, on_error)

    logger.info(
        "Evaluating policy %s (%d components) on %d households with %d worker(s)",
        policy.name,
        len(policy.composantes_ordonnees),
        len(menages),
        workers,
    )

    if workers == 1:
        return [_run(menage) for menage in menages]

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="kalkoto-eval") as pool:
        futures = [pool.submit(_run, menage.copy()) for menage in menages]
        results: List[Dict[str, float]] = []
        try:
            for future in futures:
                results.append(future.result())
        except BaseException:
            for future in futures:
                future.cancel()
            raise
    return results


__all__ = ["evaluate_one", "evaluate_menage", "evaluate_all", "ON_ERROR_MODES"]
