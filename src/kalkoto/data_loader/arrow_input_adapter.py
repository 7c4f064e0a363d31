"""Household input from an Arrow IPC (feather) file.

Columns are typed from their Arrow type the same way as DataFrame input:
integer columns give integer characteristics, floating columns float ones
and string columns text.  A null anywhere is rejected with the index of the
household it belongs to.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd
import pyarrow as pa

from kalkoto.data_loader.dataframe_input_adapter import DataFrameInputAdapter
from kalkoto.entities.menage import Menage
from kalkoto.entities.menage_input import MenageInput, MenageInputBuilder
from kalkoto.errors import FileFormatError, UninitializedError

logger = logging.getLogger(__name__)

ARROW_SUFFIXES = {".arrow", ".feather"}


class ArrowInputAdapter:
    def __init__(self) -> None:
        self.set_caracteristiques: Optional[frozenset] = None
        self.liste_menages: Optional[List[Menage]] = None

    def populate_from_path(self, path: Union[str, Path]) -> "ArrowInputAdapter":
        path = Path(path)
        if path.suffix.lower() not in ARROW_SUFFIXES:
            raise FileFormatError(f"{path} is not an Arrow file")
        try:
            frame = pd.read_feather(path)
        except pa.ArrowException as exc:
            raise FileFormatError(f"Could not read Arrow file {path}: {exc}") from exc

        self.liste_menages = DataFrameInputAdapter(frame).to_menages()
        self.set_caracteristiques = frozenset(str(col) for col in frame.columns)
        logger.info("Read %d households from %s", len(self.liste_menages), path)
        return self

    def create_valid_menage_input(self, empty_menage_input: MenageInputBuilder) -> MenageInput:
        if self.liste_menages is None:
            raise UninitializedError()
        return (
            empty_menage_input.from_unvalidated_liste_menage(self.liste_menages)
            .validate_liste_menage()
            .build_valide_menage_input()
        )


__all__ = ["ARROW_SUFFIXES", "ArrowInputAdapter"]
