import pytest

from core.errors import ValidationError
from core.state_store import (
    NOT_APPLICABLE,
    EfficacyLevel,
    Experiment,
    OthersAttributes,
    RiskLevel,
    Scenario,
    ScenarioStore,
    build_scenario,
)


def test_build_scenario_from_form_values():
    scn = build_scenario("1", "50", "16", "100")
    assert scn == Scenario(Experiment.ONE, EfficacyLevel.FIFTY, RiskLevel.SIXTEEN, 100)
    assert scn.others is None


def test_build_scenario_ignores_others_outside_experiment_three():
    scn = build_scenario("2", "90", "8", 250, efficacy_others="junk", risk_others=None, cost_others="x")
    assert scn.others is None


def test_build_scenario_experiment_three():
    scn = build_scenario("3", "0", "0", 0, "90", "30", 1000)
    assert scn.others == OthersAttributes(EfficacyLevel.NINETY, RiskLevel.THIRTY, 1000)


def test_missing_fields_reported_together():
    with pytest.raises(ValidationError) as exc:
        build_scenario("3", "", "8", None)
    assert str(exc.value) == (
        "Please provide: Efficacy (Self), Cost (Self), "
        "Efficacy (Others), Risk (Others), Cost (Others)"
    )
    assert len(exc.value.errors) == 5


def test_invalid_and_missing_fields_reported_together():
    with pytest.raises(ValidationError) as exc:
        build_scenario("1", "75", None, "1001")
    errors = exc.value.errors
    assert "missing Risk (Self)" in errors
    assert any(e.startswith("Efficacy (Self) must be one of") for e in errors)
    assert any(e.startswith("Cost (Self) must be between 0 and 1000") for e in errors)


@pytest.mark.parametrize("cost", [0, 1000, "0", "1000"])
def test_cost_bounds_inclusive(cost):
    assert build_scenario("1", "0", "0", cost).cost == int(cost)


@pytest.mark.parametrize("cost", [-1, 1001, "abc", 12.5, True])
def test_cost_out_of_domain(cost):
    with pytest.raises(ValidationError):
        build_scenario("1", "0", "0", cost)


def test_cost_unbounded_when_requested():
    assert build_scenario("1", "0", "0", 5000, cost_bounds=None).cost == 5000


def test_unknown_experiment():
    with pytest.raises(ValidationError) as exc:
        build_scenario("4", "0", "0", 0)
    assert "Experiment must be one of 1/2/3" in str(exc.value)


def test_scenario_requires_others_only_for_experiment_three():
    with pytest.raises(ValidationError):
        Scenario(Experiment.THREE, EfficacyLevel.FIFTY, RiskLevel.EIGHT, 10)
    with pytest.raises(ValidationError):
        Scenario(Experiment.ONE, EfficacyLevel.FIFTY, RiskLevel.EIGHT, 10,
                 OthersAttributes(EfficacyLevel.FIFTY, RiskLevel.EIGHT, 10))


def test_save_requires_computed_probability(exp1_scenario):
    store = ScenarioStore()
    with pytest.raises(ValidationError, match="calculate uptake probability"):
        store.save(exp1_scenario, 0)
    assert len(store) == 0


def test_store_round_trip(exp1_scenario, exp3_reference):
    store = ScenarioStore()
    first = store.save(exp1_scenario, 66.46312)
    second = store.save(exp3_reference, 54.5871)
    assert store.list() == [first, second]
    assert first.name == "Scenario 1" and second.name == "Scenario 2"
    assert first.uptake == 66.46
    assert first.scenario == exp1_scenario
    assert second.scenario == exp3_reference

    row = first.as_row()
    assert row == {
        "name": "Scenario 1", "experiment": "Experiment 1",
        "efficacy": "50", "risk": "16", "cost": 100,
        "efficacy_others": NOT_APPLICABLE, "risk_others": NOT_APPLICABLE,
        "cost_others": NOT_APPLICABLE, "uptake": 66.46,
    }
    assert second.as_row()["cost_others"] == 0


def test_list_is_a_copy(exp1_scenario):
    store = ScenarioStore()
    store.save(exp1_scenario, 10.0)
    store.list().clear()
    assert len(store) == 1


def test_filter_and_frame(exp1_scenario, exp3_reference):
    store = ScenarioStore()
    store.save(exp1_scenario, 66.46)
    store.save(exp3_reference, 54.59)
    store.save(exp1_scenario, 66.46)
    assert [s.name for s in store.filter(Experiment.ONE)] == ["Scenario 1", "Scenario 3"]
    assert [s.name for s in store.filter("3")] == ["Scenario 2"]

    df = store.to_frame()
    assert list(df.columns) == ["name", "experiment", "efficacy", "risk", "cost",
                                "efficacy_others", "risk_others", "cost_others", "uptake"]
    assert len(df) == 3
    assert len(store.to_frame("2")) == 0


def test_clear(exp1_scenario):
    store = ScenarioStore()
    store.save(exp1_scenario, 66.46)
    store.clear()
    assert store.list() == []
    assert store.save(exp1_scenario, 66.46).name == "Scenario 1"


def test_build_scenario_accepts_enum_members():
    scn = build_scenario(Experiment.ONE, EfficacyLevel.FIFTY, RiskLevel.SIXTEEN, 100)
    assert scn == build_scenario("1", "50", "16", "100")
    scn = build_scenario(Experiment.THREE, EfficacyLevel.REFERENCE, RiskLevel.REFERENCE, 0,
                         EfficacyLevel.NINETY, RiskLevel.EIGHT, 10)
    assert scn.others == OthersAttributes(EfficacyLevel.NINETY, RiskLevel.EIGHT, 10)


@pytest.mark.parametrize("cost", ["1_0", "1e2", "0x10", "10.0", " ", "+-5"])
def test_cost_text_must_be_plain_integer(cost):
    with pytest.raises(ValidationError):
        build_scenario("1", "0", "0", cost)


@pytest.mark.parametrize("cost", [" 250 ", "+250"])
def test_cost_text_with_sign_or_padding(cost):
    assert build_scenario("1", "0", "0", cost).cost == 250


def test_cost_unbounded_for_others_too():
    scn = build_scenario("3", "0", "0", 5000, "0", "0", 5000, cost_bounds=None)
    assert scn.cost == 5000
    assert scn.others.cost == 5000


def test_unbounded_scenario_can_be_saved_and_rebuilt():
    scn = build_scenario("3", "0", "0", 5000, "0", "0", 2000, cost_bounds=None)
    saved = ScenarioStore().save(scn, 1.5)
    assert saved.scenario.others.cost == 2000


def test_filter_unknown_experiment(exp1_scenario):
    store = ScenarioStore()
    store.save(exp1_scenario, 66.46)
    with pytest.raises(ValidationError):
        store.filter("9")
