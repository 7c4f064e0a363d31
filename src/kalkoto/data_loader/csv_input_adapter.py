"""Household input from a delimited text file (``;`` by default).

The first row holds the characteristic names; every following row is a
household, indexed from 1.  Each cell is typed on its own (integer, then
float, then text), so a column mixing types is caught by the household
list validation rather than here.

Every record must have exactly as many fields as the header.  Blank lines
at the end of the file are ignored; a blank line between households is an
error since it would shift the household indexes.
"""
from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from kalkoto.entities.menage import Caracteristique, Menage
from kalkoto.entities.menage_input import MenageInput, MenageInputBuilder
from kalkoto.errors import FileFormatError, UninitializedError

logger = logging.getLogger(__name__)


class CsvInputAdapter:
    def __init__(self, delimiter: str = ";") -> None:
        self.delimiter = delimiter
        self.set_caracteristiques: Optional[frozenset] = None
        self.liste_menages: Optional[List[Menage]] = None

    def _read_records(self, text: str) -> List[List[str]]:
        reader = csv.reader(io.StringIO(text, newline=""), delimiter=self.delimiter, strict=True)
        try:
            records = list(reader)
        except csv.Error as exc:
            raise FileFormatError(
                f"Could not read the CSV content (line {reader.line_num}): {exc}"
            ) from exc
        while records and not records[-1]:
            records.pop()
        return records

    def populate_from_buf(self, buf: Union[bytes, str]) -> Tuple[frozenset, List[Menage]]:
        text = buf.decode("utf-8") if isinstance(buf, bytes) else buf
        records = self._read_records(text)
        if not records:
            return frozenset(), []

        # Excel exports may start with a BOM
        headers = [h.lstrip("\ufeff").strip() for h in records[0]]
        if len(set(headers)) != len(headers):
            raise FileFormatError(f"Duplicated column names in CSV header: {headers}")

        menages = []
        for position, row in enumerate(records[1:], start=1):
            if not row:
                raise FileFormatError(f"Blank line in place of household {position}")
            if len(row) != len(headers):
                raise FileFormatError(
                    f"Household {position} has {len(row)} fields, the header has {len(headers)}"
                )
            menages.append(
                Menage(
                    index=position,
                    caracteristiques={
                        name: Caracteristique.from_str(cell) for name, cell in zip(headers, row)
                    },
                )
            )
        logger.info("Read %d households with columns %s", len(menages), headers)
        return frozenset(headers), menages

    def populate_from_path(self, path: Union[str, Path]) -> "CsvInputAdapter":
        path = Path(path)
        if path.suffix.lower() != ".csv":
            raise FileFormatError(f"{path} is not a CSV file")
        with path.open("r", encoding="utf-8", newline="") as fh:
            content = fh.read()
        self.set_caracteristiques, self.liste_menages = self.populate_from_buf(content)
        return self

    def create_valid_menage_input(self, empty_menage_input: MenageInputBuilder) -> MenageInput:
        if self.liste_menages is None:
            raise UninitializedError()
        return (
            empty_menage_input.from_unvalidated_liste_menage(self.liste_menages)
            .validate_liste_menage()
            .build_valide_menage_input()
        )


__all__ = ["CsvInputAdapter"]
