"""Policy model: ordered components, parameters and household dependencies."""
from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from kalkoto.errors import (
    EmptyPolicyError,
    MissingFieldError,
    PolicyFormatError,
)

logger = logging.getLogger(__name__)

POLICY_KEYS = ("name", "intitule_long", "composante")


class Parameters(BaseModel):
    """Three parallel sequences: parameter names, long titles and values."""

    model_config = ConfigDict(frozen=True)

    names: List[str] = Field(default_factory=list)
    intitules_long: List[str] = Field(default_factory=list)
    values: List[float] = Field(default_factory=list)

    @model_validator(mode="after")
    def same_length(self) -> "Parameters":
        if not len(self.names) == len(self.intitules_long) == len(self.values):
            raise ValueError(
                "parameters.names, parameters.intitules_long and parameters.values "
                "must have the same length"
            )
        return self


class Composante(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    intitule_long: str
    parameters: Parameters = Field(default_factory=Parameters)
    logical_order: int
    caracteristiques_dependencies: List[str] = Field(default_factory=list)
    function: str


class Policy(BaseModel):
    """A public policy, components sorted by ``logical_order`` at construction."""

    model_config = ConfigDict(frozen=True)

    name: str
    intitule_long: str
    composantes_ordonnees: List[Composante]
    parameters_intitules: Dict[str, str] = Field(default_factory=dict)
    parameters_values: Dict[str, float] = Field(default_factory=dict)
    caracteristiques_menages: FrozenSet[str] = Field(default_factory=frozenset)
    python_functions: Optional[str] = None

    @classmethod
    def from_composantes(
        cls, name: str, intitule_long: str, composantes: Sequence[Composante]
    ) -> "Policy":
        if not composantes:
            raise EmptyPolicyError(name)

        # sorted() is stable: equal logical_order keeps declaration order
        ordered = sorted(composantes, key=lambda c: c.logical_order)

        intitules: Dict[str, str] = {}
        values: Dict[str, float] = {}
        caracteristiques: set = set()
        for composante in ordered:
            params = composante.parameters
            for param_name, title, value in zip(params.names, params.intitules_long, params.values):
                if param_name in values and values[param_name] != value:
                    logger.debug(
                        "Parameter %s redefined by component %s (%s -> %s)",
                        param_name,
                        composante.name,
                        values[param_name],
                        value,
                    )
                intitules[param_name] = title
                values[param_name] = float(value)
            caracteristiques.update(composante.caracteristiques_dependencies)

        return cls(
            name=name,
            intitule_long=intitule_long,
            composantes_ordonnees=ordered,
            parameters_intitules=intitules,
            parameters_values=values,
            caracteristiques_menages=frozenset(caracteristiques),
            python_functions="\n".join(c.function for c in ordered),
        )

    @classmethod
    def from_definition(cls, definition: Mapping[str, Any]) -> "Policy":
        """Build a policy from a parsed policy file (TOML or YAML)."""
        missing = [key for key in POLICY_KEYS if key not in definition]
        if missing:
            raise MissingFieldError(missing)
        unknown = sorted(set(definition) - set(POLICY_KEYS))
        if unknown:
            raise PolicyFormatError(f"Unknown key(s) in policy definition: {', '.join(unknown)}")

        raw_composantes = definition["composante"]
        if not isinstance(raw_composantes, list):
            raise PolicyFormatError("'composante' must be a list of tables")
        try:
            composantes = [Composante.model_validate(raw) for raw in raw_composantes]
        except ValidationError as exc:
            raise PolicyFormatError(f"Invalid component definition: {exc}") from exc

        return cls.from_composantes(
            str(definition["name"]), str(definition["intitule_long"]), composantes
        )

    @property
    def composante_names(self) -> List[str]:
        return [c.name for c in self.composantes_ordonnees]

    def with_parameters(self, overrides: Mapping[str, float]) -> "Policy":
        """Copy of the policy with some parameter values replaced."""
        unknown = sorted(set(overrides) - set(self.parameters_values))
        if unknown:
            raise PolicyFormatError(f"Unknown parameter(s): {', '.join(unknown)}")
        merged = dict(self.parameters_values)
        merged.update({k: float(v) for k, v in overrides.items()})
        return self.model_copy(update={"parameters_values": merged})


class PolicyInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid_policy: Policy

    def __str__(self) -> str:
        names = "\n".join(f"- {name}" for name in self.valid_policy.composante_names)
        return (
            "Policy input successfully initialised!\n\n"
            f"Policy to simulate:\n{self.valid_policy.intitule_long!r}\n\n"
            f"Ordered components of this policy:\n{names}"
        )


__all__ = ["Parameters", "Composante", "Policy", "PolicyInput", "POLICY_KEYS"]
