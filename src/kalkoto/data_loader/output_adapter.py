"""Export of simulation results to files.

CSV tables hold one row per household: ``Index`` (1-based) followed by one
column per component, in the policy's evaluation order.  Arrow tables also
carry the household characteristics between ``Index`` and the results.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from kalkoto.errors import NotReadyError, OutputError
from kalkoto.orchestration.simulator import SimulatorBuilder

logger = logging.getLogger(__name__)

INDEX_COLUMN = "Index"


def results_frame(
    results: Sequence[Dict[str, Optional[float]]],
    columns: Sequence[str],
    *,
    allow_missing: bool = True,
) -> pd.DataFrame:
    """Tabulate ``results``; ``results[i]`` becomes the row of household ``i + 1``."""
    if not allow_missing:
        for position, row in enumerate(results, start=1):
            missing = [name for name in columns if name not in row]
            if missing:
                raise OutputError(
                    f"Inconsistent components while exporting household {position}: "
                    f"missing {', '.join(missing)}"
                )
    frame = pd.DataFrame.from_records(list(results), columns=list(columns))
    frame = frame.apply(pd.to_numeric, errors="coerce").astype("float64")
    frame.insert(0, INDEX_COLUMN, range(1, len(frame) + 1))
    return frame


def menage_frame(session: SimulatorBuilder) -> pd.DataFrame:
    """Household characteristics, one row per household, columns in input order."""
    menages = session.menage_input.liste_menage_valide
    columns = list(menages[0].caracteristiques) if menages else []
    return pd.DataFrame.from_records([m.rule_inputs() for m in menages], columns=columns)


class _ResultsWriter:
    suffix = ""

    def __init__(
        self,
        output_prefix: Optional[str] = None,
        output_dir: Union[str, Path, None] = None,
        allow_missing: bool = False,
    ) -> None:
        self.output_prefix = output_prefix
        self.output_dir = Path(output_dir) if output_dir is not None else Path(".")
        self.allow_missing = allow_missing

    def _path(self, kind: str, session: SimulatorBuilder) -> Path:
        prefix = self.output_prefix or session.output_prefix
        name = f"{prefix}-{kind}-results{self.suffix}" if prefix else f"{kind}-results{self.suffix}"
        return self.output_dir / name

    def _table(self, results, columns, session: SimulatorBuilder, allow_missing: bool) -> pd.DataFrame:
        return results_frame(results, columns, allow_missing=allow_missing)

    def _write(self, frame: pd.DataFrame, path: Path) -> None:
        raise NotImplementedError

    def _export(self, frame: pd.DataFrame, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._write(frame, path)
        logger.info("Results written to %s", path)

    def export_baseline_results(self, session: SimulatorBuilder) -> List[Path]:
        if session.results_baseline is None:
            raise NotReadyError("Cannot export: baseline results have not been computed yet")
        columns = session.policy_baseline.valid_policy.composante_names
        frame = self._table(session.results_baseline, columns, session, self.allow_missing)
        path = self._path("baseline", session)
        self._export(frame, path)
        return [path]

    def export_variante_results(self, session: SimulatorBuilder) -> List[Path]:
        if session.results_variante is None or session.results_diff is None:
            raise NotReadyError("Cannot export: variant results have not been computed yet")
        columns = session.policy_variante.valid_policy.composante_names
        variante = self._table(session.results_variante, columns, session, self.allow_missing)
        diff = self._table(session.results_diff, columns, session, True)

        variante_path = self._path("variante", session)
        diff_path = self._path("diff", session)
        self._export(variante, variante_path)
        self._export(diff, diff_path)
        return [variante_path, diff_path]


class CsvOutputAdapter(_ResultsWriter):
    suffix = ".csv"

    def __init__(
        self,
        output_prefix: Optional[str] = None,
        output_dir: Union[str, Path, None] = None,
        delimiter: str = ";",
        allow_missing: bool = False,
    ) -> None:
        super().__init__(output_prefix, output_dir, allow_missing)
        self.delimiter = delimiter

    def _write(self, frame: pd.DataFrame, path: Path) -> None:
        # missing values are written as empty cells
        frame.to_csv(path, sep=self.delimiter, index=False, na_rep="")


class ArrowOutputAdapter(_ResultsWriter):
    """Arrow IPC tables: ``Index``, the household characteristics, then the results."""

    suffix = ".arrow"

    def _table(self, results, columns, session: SimulatorBuilder, allow_missing: bool) -> pd.DataFrame:
        households = menage_frame(session)
        clash = sorted(set(households.columns) & (set(columns) | {INDEX_COLUMN}))
        if clash:
            raise OutputError(
                f"Column name(s) used both by the households and the results: {', '.join(clash)}"
            )
        if len(households) != len(results):
            raise OutputError(
                f"{len(households)} households but {len(results)} result rows to export"
            )
        table = results_frame(results, columns, allow_missing=allow_missing)
        return pd.concat(
            [table[[INDEX_COLUMN]], households, table.drop(columns=INDEX_COLUMN)], axis=1
        )

    def _write(self, frame: pd.DataFrame, path: Path) -> None:
        frame.to_feather(path)


__all__ = ["INDEX_COLUMN", "results_frame", "menage_frame", "CsvOutputAdapter", "ArrowOutputAdapter"]
