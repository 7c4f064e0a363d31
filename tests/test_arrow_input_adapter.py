from pathlib import Path

import pandas as pd
import pytest

from kalkoto.data_loader.arrow_input_adapter import ArrowInputAdapter
from kalkoto.entities.menage import CaracteristiqueType
from kalkoto.entities.menage_input import MenageInputBuilder
from kalkoto.errors import FileFormatError, MissingValueError, UninitializedError
from kalkoto.orchestration.run import run_simulation

ROOT = Path(__file__).resolve().parents[1]


def test_arrow_columns_are_typed(tmp_path):
    path = tmp_path / "menages.arrow"
    pd.DataFrame(
        {
            "Age": pd.Series([30, 45], dtype="int32"),
            "Revenu": [1000.5, 2000.0],
            "Statut": ["Locataire", "Proprietaire"],
        }
    ).to_feather(path)

    adapter = ArrowInputAdapter().populate_from_path(path)
    menage_input = adapter.create_valid_menage_input(MenageInputBuilder())

    assert menage_input.set_caracteristiques_valide == {"Age", "Revenu", "Statut"}
    first, second = menage_input.liste_menage_valide
    assert [first.index, second.index] == [1, 2]
    assert {name: c.kind for name, c in first.caracteristiques.items()} == {
        "Age": CaracteristiqueType.ENTIER,
        "Revenu": CaracteristiqueType.NUMERIC,
        "Statut": CaracteristiqueType.TEXTUEL,
    }
    assert second.rule_inputs() == {"Age": 45, "Revenu": 2000.0, "Statut": "Proprietaire"}


def test_null_values_are_rejected_with_household_index(tmp_path):
    path = tmp_path / "menages.arrow"
    pd.DataFrame(
        {"Age": pd.array([30, 45, None], dtype="Int32"), "Statut": ["a", "b", "c"]}
    ).to_feather(path)

    with pytest.raises(MissingValueError) as excinfo:
        ArrowInputAdapter().populate_from_path(path)

    assert excinfo.value.menage_index == 3
    assert excinfo.value.column == "Age"

    pd.DataFrame({"Statut": ["a", None]}).to_feather(path)
    with pytest.raises(MissingValueError) as excinfo:
        ArrowInputAdapter().populate_from_path(path)
    assert excinfo.value.menage_index == 2


def test_wrong_extension_or_content(tmp_path):
    csv_path = tmp_path / "menages.csv"
    csv_path.write_text("Age\n30\n", encoding="utf-8")
    with pytest.raises(FileFormatError):
        ArrowInputAdapter().populate_from_path(csv_path)

    broken = tmp_path / "menages.arrow"
    broken.write_text("Age\n30\n", encoding="utf-8")
    with pytest.raises(FileFormatError):
        ArrowInputAdapter().populate_from_path(broken)


def test_create_before_populate():
    with pytest.raises(UninitializedError):
        ArrowInputAdapter().create_valid_menage_input(MenageInputBuilder())


def test_arrow_households_give_same_results_as_csv(tmp_path):
    arrow_path = tmp_path / "menages.arrow"
    pd.read_csv(ROOT / "data" / "menages_example.csv", sep=";").to_feather(arrow_path)
    baseline = ROOT / "policies" / "apa_baseline.toml"
    variante = ROOT / "policies" / "apa_reforme.yaml"

    from_arrow = run_simulation(arrow_path, baseline, variante, export=False)
    from_csv = run_simulation(ROOT / "data" / "menages_example.csv", baseline, variante, export=False)

    assert from_arrow.results_diff == from_csv.results_diff
