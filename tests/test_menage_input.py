import pytest

from kalkoto.entities.menage import Menage
from kalkoto.entities.menage_input import ListPhase, MenageInput, MenageInputBuilder
from kalkoto.errors import EmptyInputError, SchemaMismatchError, UninitializedError


def make_list(*rows):
    return [Menage.from_values(i, row) for i, row in enumerate(rows, start=1)]


def test_valid_list_builds_menage_input():
    menages = make_list(
        {"Age": 30, "Revenu": 100.0},
        {"Age": 35, "Revenu": 200.0},
        {"Age": 40, "Revenu": 300.0},
    )

    result = (
        MenageInputBuilder()
        .from_unvalidated_liste_menage(menages)
        .validate_liste_menage()
        .build_valide_menage_input()
    )

    assert result == MenageInput(frozenset({"Age", "Revenu"}), menages)
    assert len(result) == 3


def test_age_only_households_validate():
    result = (
        MenageInputBuilder()
        .from_unvalidated_liste_menage(make_list({"Age": 25}, {"Age": 35}))
        .validate_liste_menage()
        .build_valide_menage_input()
    )

    assert result.set_caracteristiques_valide == {"Age"}


def test_type_mismatch_reports_fault_index():
    builder = MenageInputBuilder().from_unvalidated_liste_menage(make_list({"Age": 25}, {"Age": 35.0}))

    with pytest.raises(SchemaMismatchError) as excinfo:
        builder.validate_liste_menage()

    assert excinfo.value.fault_index == 1
    assert excinfo.value.offending_index == 2
    assert excinfo.value.characteristic == "Age"


def test_text_value_in_third_household_is_rejected():
    menages = make_list(
        {"Age": 30, "Revenu": 100.0},
        {"Age": 35, "Revenu": 200.0},
        {"Age": "40", "Revenu": 300.0},
    )

    with pytest.raises(SchemaMismatchError) as excinfo:
        MenageInputBuilder().from_unvalidated_liste_menage(menages).validate_liste_menage()

    assert excinfo.value.fault_index == 2
    assert excinfo.value.offending_index == 3


def test_extra_characteristic_in_later_household_is_rejected():
    menages = make_list({"Age": 30}, {"Age": 31, "Revenu": 1.0})

    with pytest.raises(SchemaMismatchError) as excinfo:
        MenageInputBuilder().from_unvalidated_liste_menage(menages).validate_liste_menage()

    assert excinfo.value.characteristic == "Revenu"


def test_growing_schema_chain_is_rejected():
    # each household only adds names to the previous one
    menages = make_list({"A": 1}, {"A": 1, "B": 2}, {"A": 1, "B": 2, "C": 3})

    with pytest.raises(SchemaMismatchError):
        MenageInputBuilder().from_unvalidated_liste_menage(menages).validate_liste_menage()


def test_empty_list_is_rejected():
    with pytest.raises(EmptyInputError):
        MenageInputBuilder().from_unvalidated_liste_menage([]).validate_liste_menage()


def test_out_of_order_steps_raise_uninitialized():
    with pytest.raises(UninitializedError):
        MenageInputBuilder().validate_liste_menage()

    unvalidated = MenageInputBuilder().from_unvalidated_liste_menage(make_list({"Age": 1}))
    with pytest.raises(UninitializedError):
        unvalidated.build_valide_menage_input()


def test_transitions_return_new_builders():
    empty = MenageInputBuilder()
    unvalidated = empty.from_unvalidated_liste_menage(make_list({"Age": 1}))
    validated = unvalidated.validate_liste_menage()

    assert empty.phase is ListPhase.EMPTY
    assert unvalidated.phase is ListPhase.UNVALIDATED
    assert validated.phase is ListPhase.VALIDATED
    assert "Age" in str(validated.build_valide_menage_input())
