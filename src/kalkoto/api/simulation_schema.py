"""Pydantic models for the HTTP simulation endpoint."""
from __future__ import annotations

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, StrictFloat, StrictInt, StrictStr

# Policy names map to files of the server's policy directory
POLICY_NAME_PATTERN = r"^[A-Za-z0-9_\-]+$"

CharacteristicValue = Union[StrictInt, StrictFloat, StrictStr]


class SimulationRequest(BaseModel):
    menages: List[Dict[str, CharacteristicValue]] = Field(..., min_length=1)
    baseline: str = Field(..., pattern=POLICY_NAME_PATTERN)
    variante: Optional[str] = Field(None, pattern=POLICY_NAME_PATTERN)
    parameter_overrides: Dict[str, float] = Field(default_factory=dict)


__all__ = ["SimulationRequest", "CharacteristicValue", "POLICY_NAME_PATTERN"]
