"""Household ("ménage") value model.

A household is a 1-based index plus a mapping from characteristic name to a
typed :class:`Caracteristique`.  The type tag (integer, float or text) is
what the household list validator compares between households.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple

import numpy as np


class CaracteristiqueType(str, Enum):
    ENTIER = "entier"
    NUMERIC = "numeric"
    TEXTUEL = "textuel"


_PYTHON_TYPES = {
    CaracteristiqueType.ENTIER: int,
    CaracteristiqueType.NUMERIC: float,
    CaracteristiqueType.TEXTUEL: str,
}


@dataclass(frozen=True)
class Caracteristique:
    """Immutable tagged value: integer, float or text."""

    kind: CaracteristiqueType
    value: Any

    def __post_init__(self) -> None:
        expected = _PYTHON_TYPES[self.kind]
        # bool is an int subclass; it is not a valid integer characteristic
        if isinstance(self.value, bool) or not isinstance(self.value, expected):
            raise TypeError(
                f"{self.kind.value} characteristic expects {expected.__name__}, "
                f"got {type(self.value).__name__}"
            )

    @classmethod
    def entier(cls, value: int) -> "Caracteristique":
        return cls(CaracteristiqueType.ENTIER, int(value))

    @classmethod
    def numeric(cls, value: float) -> "Caracteristique":
        return cls(CaracteristiqueType.NUMERIC, float(value))

    @classmethod
    def textuel(cls, value: str) -> "Caracteristique":
        return cls(CaracteristiqueType.TEXTUEL, str(value))

    @classmethod
    def from_value(cls, value: Any) -> "Caracteristique":
        """Tag a plain Python (or numpy) scalar."""
        if isinstance(value, Caracteristique):
            return value
        if isinstance(value, (bool, np.bool_)):
            raise TypeError("Boolean characteristics are not supported")
        if isinstance(value, (int, np.integer)):
            return cls.entier(int(value))
        if isinstance(value, (float, np.floating)):
            return cls.numeric(float(value))
        if isinstance(value, str):
            return cls.textuel(value)
        raise TypeError(f"Unsupported characteristic value: {value!r}")

    @classmethod
    def from_str(cls, raw: str) -> "Caracteristique":
        """Parse a raw text cell: integer first, then float, then text."""
        text = raw.strip()
        try:
            return cls.entier(int(text))
        except ValueError:
            pass
        try:
            return cls.numeric(float(text))
        except ValueError:
            return cls.textuel(text)

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class Menage:
    index: int
    caracteristiques: Dict[str, Caracteristique] = field(default_factory=dict)

    @classmethod
    def from_values(cls, index: int, values: Dict[str, Any]) -> "Menage":
        return cls(index, {name: Caracteristique.from_value(v) for name, v in values.items()})

    def compare_type_carac(self, other: "Menage") -> Tuple[bool, int, str]:
        """Check that ``other`` carries every characteristic of ``self`` with the same tag.

        Returns ``(True, -1, "")`` when compatible, otherwise
        ``(False, self.index, name)`` for the first faulty name in sorted order.
        Characteristics only present in ``other`` are not checked.
        """
        for name in sorted(self.caracteristiques):
            theirs = other.caracteristiques.get(name)
            if theirs is None or theirs.kind is not self.caracteristiques[name].kind:
                return False, self.index, name
        return True, -1, ""

    def rule_inputs(self) -> Dict[str, Any]:
        """Plain ``{name: value}`` mapping handed to component rules."""
        return {name: carac.value for name, carac in self.caracteristiques.items()}

    def copy(self) -> "Menage":
        return Menage(self.index, dict(self.caracteristiques))

    def __str__(self) -> str:
        lines = [f"Household {self.index} has characteristics:"]
        lines.extend(f"{name} -> {value}" for name, value in self.caracteristiques.items())
        return "\n".join(lines)


__all__ = ["CaracteristiqueType", "Caracteristique", "Menage"]
