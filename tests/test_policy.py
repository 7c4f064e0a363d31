import pytest
from pydantic import ValidationError

from kalkoto.entities.policy import Composante, Parameters, Policy, PolicyInput
from kalkoto.errors import EmptyPolicyError, MissingFieldError, PolicyFormatError


def make_composante(name, order, params=None, deps=(), body="return 0.0"):
    params = params or {}
    return Composante(
        name=name,
        intitule_long=f"Composante {name}",
        parameters=Parameters(
            names=list(params),
            intitules_long=[f"Titre {p}" for p in params],
            values=list(params.values()),
        ),
        logical_order=order,
        caracteristiques_dependencies=list(deps),
        function=f"def {name}(Variables, ParamsDict, MenageCarac):\n    {body}\n",
    )


def test_components_sorted_by_logical_order_stable():
    composantes = [
        make_composante("c", 2),
        make_composante("a", 1),
        make_composante("d", 2),
        make_composante("b", 1),
    ]

    policy = Policy.from_composantes("p", "Policy", composantes)

    assert policy.composante_names == ["a", "b", "c", "d"]
    orders = [c.logical_order for c in policy.composantes_ordonnees]
    assert orders == sorted(orders)


def test_parameters_and_characteristics_are_aggregated():
    policy = Policy.from_composantes(
        "p",
        "Policy",
        [
            make_composante("second", 2, {"tau": 2.0, "beta": 1.0}, deps=["Revenu"]),
            make_composante("first", 1, {"tau": 1.0}, deps=["Age", "Revenu"]),
        ],
    )

    # later component in evaluation order wins
    assert policy.parameters_values == {"tau": 2.0, "beta": 1.0}
    assert policy.parameters_intitules["beta"] == "Titre beta"
    assert policy.caracteristiques_menages == {"Age", "Revenu"}
    assert "def first" in policy.python_functions
    assert policy.python_functions.index("def first") < policy.python_functions.index("def second")


def test_empty_policy_is_rejected():
    with pytest.raises(EmptyPolicyError):
        Policy.from_composantes("p", "Policy", [])


def test_parameters_must_have_same_length():
    with pytest.raises(ValidationError):
        Parameters(names=["a", "b"], intitules_long=["A"], values=[1.0, 2.0])


def _definition():
    return {
        "name": "rsa",
        "intitule_long": "Revenu de solidarité active",
        "composante": [
            {
                "name": "rsa",
                "intitule_long": "Montant",
                "parameters": {"names": ["tau"], "intitules_long": ["Taux"], "values": [2.0]},
                "logical_order": 1,
                "caracteristiques_dependencies": ["Age"],
                "function": "def rsa(v, p, m):\n    return p['tau'] * m['Age']\n",
            }
        ],
    }


def test_from_definition_builds_policy():
    policy = Policy.from_definition(_definition())

    assert policy.name == "rsa"
    assert policy.parameters_values == {"tau": 2.0}
    assert policy.caracteristiques_menages == {"Age"}


def test_from_definition_missing_fields():
    definition = _definition()
    del definition["name"]
    del definition["composante"]

    with pytest.raises(MissingFieldError) as excinfo:
        Policy.from_definition(definition)

    assert excinfo.value.fields == ["composante", "name"]


def test_from_definition_rejects_unknown_keys_and_bad_components():
    definition = _definition()
    definition["komposante"] = []
    with pytest.raises(PolicyFormatError):
        Policy.from_definition(definition)

    definition = _definition()
    definition["composante"][0]["parameters"]["values"] = [1.0, 2.0]
    with pytest.raises(PolicyFormatError):
        Policy.from_definition(definition)

    definition = _definition()
    definition["composante"] = []
    with pytest.raises(EmptyPolicyError):
        Policy.from_definition(definition)


def test_with_parameters_returns_modified_copy():
    policy = Policy.from_definition(_definition())

    variant = policy.with_parameters({"tau": 3})

    assert variant.parameters_values == {"tau": 3.0}
    assert policy.parameters_values == {"tau": 2.0}
    with pytest.raises(PolicyFormatError):
        policy.with_parameters({"unknown": 1.0})


def test_policy_input_summary_lists_components():
    summary = str(PolicyInput(valid_policy=Policy.from_definition(_definition())))

    assert "- rsa" in summary
