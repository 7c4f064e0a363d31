"""Staged simulation session: households, baseline, variant, diff.

Valid order of the transitions::

    EMPTY --add_menage_input--> MENAGE
    MENAGE --add_valid_baseline_policy--> BASELINE
    BASELINE --simulate_baseline_policy--> BASELINE_SIMULATED
    BASELINE[_SIMULATED] --add_valid_variante_policy--> VARIANTE
    VARIANTE --simulate_variante_policy--> VARIANTE_SIMULATED

Each transition returns a new :class:`SimulatorBuilder`; the one it was
called on is left untouched.  Any other call raises :class:`NotReadyError`.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Protocol

from kalkoto.config import SimulationSettings
from kalkoto.entities.menage_input import MenageInput, MenageInputBuilder
from kalkoto.entities.policy import PolicyInput
from kalkoto.errors import BaselineNotComputedError, NotReadyError, SchemaIncompatibleError
from kalkoto.model.diff import DiffResults, Results, compute_diff
from kalkoto.model.evaluator import evaluate_all
from kalkoto.model.rule_executor import PythonRuleExecutor, RuleExecutor

logger = logging.getLogger(__name__)


class MenageListCreator(Protocol):
    def create_valid_menage_input(self, empty_menage_input: MenageInputBuilder) -> MenageInput:
        ...


class PolicyCreator(Protocol):
    def create_valid_policy_input(self) -> PolicyInput:
        ...


class SimulationPhase(str, Enum):
    EMPTY = "empty"
    MENAGE = "menage"
    BASELINE = "baseline"
    BASELINE_SIMULATED = "baseline_simulated"
    VARIANTE = "variante"
    VARIANTE_SIMULATED = "variante_simulated"


_BASELINE_ATTACHED = {
    SimulationPhase.BASELINE,
    SimulationPhase.BASELINE_SIMULATED,
    SimulationPhase.VARIANTE,
    SimulationPhase.VARIANTE_SIMULATED,
}
_VARIANTE_ATTACHED = {SimulationPhase.VARIANTE, SimulationPhase.VARIANTE_SIMULATED}


@dataclass(frozen=True)
class SimulatorBuilder:
    phase: SimulationPhase = SimulationPhase.EMPTY
    menage_input: Optional[MenageInput] = None
    policy_baseline: Optional[PolicyInput] = None
    policy_variante: Optional[PolicyInput] = None
    results_baseline: Optional[Results] = None
    results_variante: Optional[Results] = None
    results_diff: Optional[DiffResults] = None
    output_prefix: Optional[str] = None
    settings: SimulationSettings = field(default_factory=SimulationSettings)

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _require(self, allowed, action: str) -> None:
        if self.phase not in allowed:
            raise NotReadyError(f"Cannot {action} in phase '{self.phase.value}'")

    def _check_schema(self, policy_input: PolicyInput, role: str) -> None:
        required = policy_input.valid_policy.caracteristiques_menages
        missing = required - self.menage_input.set_caracteristiques_valide
        if missing:
            raise SchemaIncompatibleError(missing, role=role)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def add_output_prefix(self, prefix: str) -> "SimulatorBuilder":
        return replace(self, output_prefix=prefix)

    def add_menage_input(self, adapter: MenageListCreator) -> "SimulatorBuilder":
        self._require({SimulationPhase.EMPTY}, "attach a household input")
        menage_input = adapter.create_valid_menage_input(MenageInputBuilder())
        logger.info("Household input attached: %d households", len(menage_input))
        return replace(self, phase=SimulationPhase.MENAGE, menage_input=menage_input)

    def add_valid_baseline_policy(self, adapter: PolicyCreator) -> "SimulatorBuilder":
        self._require({SimulationPhase.MENAGE}, "attach a baseline policy")
        policy_input = adapter.create_valid_policy_input()
        self._check_schema(policy_input, "baseline")
        logger.info("Baseline policy attached: %s", policy_input.valid_policy.name)
        return replace(self, phase=SimulationPhase.BASELINE, policy_baseline=policy_input)

    def add_valid_variante_policy(self, adapter: PolicyCreator) -> "SimulatorBuilder":
        self._require(
            {SimulationPhase.BASELINE, SimulationPhase.BASELINE_SIMULATED},
            "attach a variant policy",
        )
        policy_input = adapter.create_valid_policy_input()
        self._check_schema(policy_input, "variante")
        logger.info("Variant policy attached: %s", policy_input.valid_policy.name)
        return replace(self, phase=SimulationPhase.VARIANTE, policy_variante=policy_input)

    def _evaluate(
        self,
        policy_input: PolicyInput,
        executor: Optional[RuleExecutor],
        cancel_event: Optional[threading.Event],
    ) -> List[Dict[str, float]]:
        policy = policy_input.valid_policy
        if executor is None:
            executor = PythonRuleExecutor.for_policy(
                policy, serialize=self.settings.serialize_rule_calls
            )
        return evaluate_all(
            policy,
            self.menage_input.liste_menage_valide,
            executor,
            max_workers=self.settings.max_workers,
            on_error=self.settings.on_error,
            cancel_event=cancel_event,
        )

    def simulate_baseline_policy(
        self,
        executor: Optional[RuleExecutor] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> "SimulatorBuilder":
        """Run the baseline; running it again replaces earlier results."""
        self._require(_BASELINE_ATTACHED, "simulate the baseline policy")
        results = self._evaluate(self.policy_baseline, executor, cancel_event)
        phase = (
            SimulationPhase.VARIANTE
            if self.phase in _VARIANTE_ATTACHED
            else SimulationPhase.BASELINE_SIMULATED
        )
        return replace(
            self,
            phase=phase,
            results_baseline=results,
            results_variante=None,
            results_diff=None,
        )

    def simulate_variante_policy(
        self,
        executor: Optional[RuleExecutor] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> "SimulatorBuilder":
        self._require(_VARIANTE_ATTACHED, "simulate the variant policy")
        if self.results_baseline is None:
            raise BaselineNotComputedError()
        results = self._evaluate(self.policy_variante, executor, cancel_event)
        diff = compute_diff(self.results_baseline, results)
        logger.info("Variant simulated and compared with the baseline")
        return replace(
            self,
            phase=SimulationPhase.VARIANTE_SIMULATED,
            results_variante=results,
            results_diff=diff,
        )


__all__ = ["SimulationPhase", "SimulatorBuilder", "MenageListCreator", "PolicyCreator"]
