"""Exception hierarchy shared by the household, policy and simulation layers."""
from __future__ import annotations

from typing import Iterable, Optional


class KalkotoError(Exception):
    """Base class of every error raised by the package."""


# ---------------------------------------------------------------------------
# Household list
# ---------------------------------------------------------------------------


class MenageListError(KalkotoError, ValueError):
    """Household input could not be turned into a valid list."""


class EmptyInputError(MenageListError):
    def __init__(self, message: str = "The household list to validate is empty") -> None:
        super().__init__(message)


class SchemaMismatchError(MenageListError):
    """Two households do not share the same characteristic names and types."""

    def __init__(
        self,
        fault_index: int,
        cause: str,
        characteristic: str = "",
        offending_index: Optional[int] = None,
    ) -> None:
        self.fault_index = fault_index
        self.cause = cause
        self.characteristic = characteristic
        self.offending_index = (
            offending_index if offending_index is not None else fault_index + 1
        )
        super().__init__(
            f"Household list validation failed between households {fault_index} "
            f"and {self.offending_index}. Cause: {cause}. Check the household input file."
        )


class MissingValueError(MenageListError):
    def __init__(self, menage_index: int, column: str) -> None:
        self.menage_index = menage_index
        self.column = column
        super().__init__(f"Missing value for '{column}' in household {menage_index}")


class UninitializedError(MenageListError):
    def __init__(self) -> None:
        super().__init__("The household list has not been validated yet")


class FileFormatError(MenageListError):
    """Input file has the wrong extension or cannot be parsed."""


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


class PolicyError(KalkotoError, ValueError):
    """Policy definition is invalid."""


class MissingFieldError(PolicyError):
    def __init__(self, fields: Iterable[str]) -> None:
        self.fields = sorted(fields)
        super().__init__(f"Missing field(s) in policy definition: {', '.join(self.fields)}")


class EmptyPolicyError(PolicyError):
    def __init__(self, name: str = "") -> None:
        super().__init__(f"Policy '{name}' does not declare any component")


class PolicyFormatError(PolicyError):
    pass


class RuleCompilationError(PolicyError):
    pass


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------


class SimulationError(KalkotoError):
    """Simulation could not be carried out."""


class SchemaIncompatibleError(SimulationError):
    """The policy needs characteristics the household schema lacks."""

    def __init__(self, missing: Iterable[str], role: str = "baseline") -> None:
        self.missing = frozenset(missing)
        self.role = role
        super().__init__(
            f"The {role} policy depends on characteristics missing from the household "
            f"input: {', '.join(sorted(self.missing))}"
        )


class NotReadyError(SimulationError):
    pass


class BaselineNotComputedError(SimulationError):
    def __init__(self) -> None:
        super().__init__("Baseline results have not been computed yet")


class EvaluationError(SimulationError):
    """A component rule failed for one household."""

    def __init__(self, component: str, menage_index: int, cause: BaseException | str) -> None:
        self.component = component
        self.menage_index = menage_index
        self.cause = cause
        super().__init__(
            f"Error while computing component '{component}' for household "
            f"{menage_index}: {cause}"
        )


class SimulationCancelledError(SimulationError):
    pass


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class OutputError(KalkotoError):
    pass


__all__ = [
    "KalkotoError",
    "MenageListError",
    "EmptyInputError",
    "SchemaMismatchError",
    "MissingValueError",
    "UninitializedError",
    "FileFormatError",
    "PolicyError",
    "MissingFieldError",
    "EmptyPolicyError",
    "PolicyFormatError",
    "RuleCompilationError",
    "SimulationError",
    "SchemaIncompatibleError",
    "NotReadyError",
    "BaselineNotComputedError",
    "EvaluationError",
    "SimulationCancelledError",
    "OutputError",
]
