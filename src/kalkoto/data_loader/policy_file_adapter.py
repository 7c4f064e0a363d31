"""Policy input from a TOML or YAML file.

Expected layout (TOML)::

    name = "APA domicile"
    intitule_long = "Aide personnalisée à domicile"

    [[composante]]
    name = "plan_notif"
    intitule_long = "Plan notifié"
    parameters.names = ["tau_1"]
    parameters.intitules_long = ["Taux GIR 1"]
    parameters.values = [0.15]
    caracteristiques_dependencies = ["Age", "GIR"]
    logical_order = 1
    function = '''
    def plan_notif(Variables, ParamsDict, MenageCarac):
        return ParamsDict["tau_1"] * MenageCarac["Age"]
    '''

The YAML layout uses the same keys.
"""
from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from kalkoto.entities.policy import Policy, PolicyInput
from kalkoto.errors import PolicyFormatError

logger = logging.getLogger(__name__)

TOML_SUFFIXES = {".toml"}
YAML_SUFFIXES = {".yaml", ".yml"}


def read_policy_definition(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in TOML_SUFFIXES | YAML_SUFFIXES:
        raise PolicyFormatError(f"{path} is not a TOML or YAML policy file")

    if suffix in TOML_SUFFIXES:
        with path.open("rb") as fh:
            try:
                definition = tomllib.load(fh)
            except tomllib.TOMLDecodeError as exc:
                raise PolicyFormatError(f"Could not parse TOML policy file {path}: {exc}") from exc
    else:
        with path.open("r", encoding="utf-8") as fh:
            try:
                definition = yaml.safe_load(fh)
            except yaml.YAMLError as exc:
                raise PolicyFormatError(f"Could not parse YAML policy file {path}: {exc}") from exc

    if not isinstance(definition, dict):
        raise PolicyFormatError(f"Policy file {path} must contain a mapping at top level")
    return definition


class PolicyFileAdapter:
    """Reads a policy file and, optionally, overrides some parameter values."""

    def __init__(
        self,
        path: Union[str, Path],
        parameter_overrides: Optional[Mapping[str, float]] = None,
    ) -> None:
        self.path = Path(path)
        self.parameter_overrides = dict(parameter_overrides or {})

    def create_valid_policy_input(self) -> PolicyInput:
        policy = Policy.from_definition(read_policy_definition(self.path))
        if self.parameter_overrides:
            policy = policy.with_parameters(self.parameter_overrides)
        logger.info(
            "Policy %s read from %s (%d components)",
            policy.name,
            self.path,
            len(policy.composantes_ordonnees),
        )
        return PolicyInput(valid_policy=policy)


class PolicyDefinitionAdapter:
    """Policy given as an already parsed mapping."""

    def __init__(self, definition: Mapping[str, Any]) -> None:
        self.definition = definition

    def create_valid_policy_input(self) -> PolicyInput:
        return PolicyInput(valid_policy=Policy.from_definition(self.definition))


__all__ = ["PolicyFileAdapter", "PolicyDefinitionAdapter", "read_policy_definition"]
