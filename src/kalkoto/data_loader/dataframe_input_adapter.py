"""Household input from a pandas DataFrame (one row per household).

Columns are typed once from their dtype: integer columns give integer
characteristics, float columns float ones and string/object columns text.
Missing values are rejected.
"""
from __future__ import annotations

import logging
from typing import List

import pandas as pd
from pandas.api import types as ptypes

from kalkoto.entities.menage import Caracteristique, CaracteristiqueType, Menage
from kalkoto.entities.menage_input import MenageInput, MenageInputBuilder
from kalkoto.errors import FileFormatError, MissingValueError

logger = logging.getLogger(__name__)


def _column_kind(series: pd.Series) -> CaracteristiqueType:
    if ptypes.is_bool_dtype(series):
        raise FileFormatError(f"Column '{series.name}' is boolean; use an integer column instead")
    if ptypes.is_integer_dtype(series):
        return CaracteristiqueType.ENTIER
    if ptypes.is_float_dtype(series):
        return CaracteristiqueType.NUMERIC
    if ptypes.is_string_dtype(series) or ptypes.is_object_dtype(series):
        return CaracteristiqueType.TEXTUEL
    raise FileFormatError(f"Column '{series.name}' has unsupported dtype {series.dtype}")


class DataFrameInputAdapter:
    def __init__(self, frame: pd.DataFrame) -> None:
        self.frame = frame

    def to_menages(self) -> List[Menage]:
        frame = self.frame
        kinds = {str(col): _column_kind(frame[col]) for col in frame.columns}

        na_rows, na_cols = frame.isna().to_numpy().nonzero()
        if len(na_rows):
            raise MissingValueError(int(na_rows[0]) + 1, str(frame.columns[na_cols[0]]))

        constructors = {
            CaracteristiqueType.ENTIER: Caracteristique.entier,
            CaracteristiqueType.NUMERIC: Caracteristique.numeric,
            CaracteristiqueType.TEXTUEL: Caracteristique.textuel,
        }
        menages = []
        for position, record in enumerate(frame.to_dict(orient="records"), start=1):
            menages.append(
                Menage(
                    index=position,
                    caracteristiques={
                        str(name): constructors[kinds[str(name)]](value)
                        for name, value in record.items()
                    },
                )
            )
        logger.info("Converted %d DataFrame rows into households", len(menages))
        return menages

    def create_valid_menage_input(self, empty_menage_input: MenageInputBuilder) -> MenageInput:
        return (
            empty_menage_input.from_unvalidated_liste_menage(self.to_menages())
            .validate_liste_menage()
            .build_valide_menage_input()
        )


__all__ = ["DataFrameInputAdapter"]
