from pathlib import Path

import pytest

from kalkoto.data_loader.policy_file_adapter import (
    PolicyDefinitionAdapter,
    PolicyFileAdapter,
    read_policy_definition,
)
from kalkoto.errors import MissingFieldError, PolicyFormatError

ROOT = Path(__file__).resolve().parents[1]

RSA_TOML = '''
name = "rsa"
intitule_long = "Revenu de solidarité active"

[[composante]]
name = "rsa"
intitule_long = "Montant RSA"
parameters.names = ["tau"]
parameters.intitules_long = ["Taux"]
parameters.values = [2.0]
caracteristiques_dependencies = ["Age"]
logical_order = 1
function = """
def rsa(Variables, ParamsDict, MenageCarac):
    return ParamsDict["tau"] * MenageCarac["Age"]
"""
'''


def test_toml_policy_file(tmp_path):
    path = tmp_path / "rsa.toml"
    path.write_text(RSA_TOML, encoding="utf-8")

    policy = PolicyFileAdapter(path).create_valid_policy_input().valid_policy

    assert policy.name == "rsa"
    assert policy.parameters_values == {"tau": 2.0}
    assert policy.caracteristiques_menages == {"Age"}


def test_shipped_policies_are_sorted_by_logical_order():
    toml_policy = PolicyFileAdapter(ROOT / "policies" / "apa_baseline.toml").create_valid_policy_input()
    yaml_policy = PolicyFileAdapter(ROOT / "policies" / "apa_reforme.yaml").create_valid_policy_input()

    expected = ["plan_notif", "plan_cons", "participation", "apa_versee"]
    assert toml_policy.valid_policy.composante_names == expected
    assert yaml_policy.valid_policy.composante_names == expected
    assert yaml_policy.valid_policy.parameters_values["seuil_exoneration"] == 1000.0
    assert toml_policy.valid_policy.caracteristiques_menages == {"Age", "GIR", "Revenu"}


def test_missing_name_is_reported(tmp_path):
    path = tmp_path / "rsa.toml"
    path.write_text(RSA_TOML.replace('name = "rsa"\nintitule_long', "intitule_long", 1), encoding="utf-8")

    with pytest.raises(MissingFieldError) as excinfo:
        PolicyFileAdapter(path).create_valid_policy_input()

    assert excinfo.value.fields == ["name"]


def test_misspelled_component_table(tmp_path):
    path = tmp_path / "rsa.toml"
    path.write_text(RSA_TOML.replace("[[composante]]", "[[komposante]]"), encoding="utf-8")

    with pytest.raises(MissingFieldError) as excinfo:
        PolicyFileAdapter(path).create_valid_policy_input()

    assert excinfo.value.fields == ["composante"]


def test_wrong_extension_and_bad_syntax(tmp_path):
    txt = tmp_path / "rsa.txt"
    txt.write_text(RSA_TOML, encoding="utf-8")
    with pytest.raises(PolicyFormatError):
        read_policy_definition(txt)

    broken = tmp_path / "rsa.toml"
    broken.write_text("name = \n", encoding="utf-8")
    with pytest.raises(PolicyFormatError):
        read_policy_definition(broken)

    scalar = tmp_path / "rsa.yaml"
    scalar.write_text("just a string\n", encoding="utf-8")
    with pytest.raises(PolicyFormatError):
        read_policy_definition(scalar)


def test_parameter_overrides(tmp_path):
    path = tmp_path / "rsa.toml"
    path.write_text(RSA_TOML, encoding="utf-8")

    policy = PolicyFileAdapter(path, parameter_overrides={"tau": 2.4}).create_valid_policy_input()

    assert policy.valid_policy.parameters_values == {"tau": 2.4}

    with pytest.raises(PolicyFormatError):
        PolicyFileAdapter(path, parameter_overrides={"unknown": 1.0}).create_valid_policy_input()


def test_definition_adapter():
    definition = read_policy_definition(ROOT / "policies" / "apa_reforme.yaml")

    policy_input = PolicyDefinitionAdapter(definition).create_valid_policy_input()

    assert "- apa_versee" in str(policy_input)
