"""Staged builder turning raw households into a validated household input.

The builder moves through ``EMPTY -> UNVALIDATED -> VALIDATED``; each step
returns a new builder and the final :class:`MenageInput` can only be built
from a validated one.

Every household is compared against the first one in both directions, so a
validated list is homogeneous as a whole: same characteristic names and, for
each name, the same type tag in every household.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Sequence

from kalkoto.entities.menage import Menage
from kalkoto.errors import EmptyInputError, SchemaMismatchError, UninitializedError

logger = logging.getLogger(__name__)


class ListPhase(str, Enum):
    EMPTY = "empty"
    UNVALIDATED = "unvalidated"
    VALIDATED = "validated"


@dataclass(frozen=True)
class MenageInput:
    set_caracteristiques_valide: FrozenSet[str]
    liste_menage_valide: List[Menage]

    def __len__(self) -> int:
        return len(self.liste_menage_valide)

    def __str__(self) -> str:
        first = self.liste_menage_valide[0] if self.liste_menage_valide else None
        return (
            "Household input successfully initialised!\n\n"
            f"Characteristics found in the household input:\n"
            f"{sorted(self.set_caracteristiques_valide)}\n\n"
            f"First household of the input:\n{first}"
        )


@dataclass(frozen=True)
class MenageInputBuilder:
    phase: ListPhase = ListPhase.EMPTY
    liste_menage: List[Menage] = field(default_factory=list)
    set_caracteristiques: Optional[FrozenSet[str]] = None

    def from_unvalidated_liste_menage(self, rows: Sequence[Menage]) -> "MenageInputBuilder":
        return MenageInputBuilder(ListPhase.UNVALIDATED, list(rows), None)

    def has_valid_liste_menage(self) -> bool:
        """Raise on the first household that breaks the list schema."""
        rows = self.liste_menage
        if not rows:
            raise EmptyInputError()

        reference = rows[0]
        for position in range(1, len(rows)):
            menage = rows[position]
            ok, _, name = reference.compare_type_carac(menage)
            if ok:
                # extra characteristics on the later household
                ok, _, name = menage.compare_type_carac(reference)
            if not ok:
                raise SchemaMismatchError(
                    fault_index=rows[position - 1].index,
                    cause=(
                        "the names or types of the characteristics of these households "
                        f"do not match, problem with characteristic {name}"
                    ),
                    characteristic=name,
                    offending_index=menage.index,
                )
        return True

    def validate_liste_menage(self) -> "MenageInputBuilder":
        if self.phase is ListPhase.EMPTY:
            raise UninitializedError()
        self.has_valid_liste_menage()
        names = frozenset(self.liste_menage[0].caracteristiques)
        logger.info(
            "Validated %d households with %d characteristics",
            len(self.liste_menage),
            len(names),
        )
        return MenageInputBuilder(ListPhase.VALIDATED, self.liste_menage, names)

    def build_valide_menage_input(self) -> MenageInput:
        if self.phase is not ListPhase.VALIDATED or self.set_caracteristiques is None:
            raise UninitializedError()
        return MenageInput(self.set_caracteristiques, self.liste_menage)


__all__ = ["ListPhase", "MenageInput", "MenageInputBuilder"]
