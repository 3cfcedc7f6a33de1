import pytest

from core.errors import ValidationError
from core.session import DecisionSession, SessionState


def test_save_before_compute_is_rejected():
    s = DecisionSession()
    with pytest.raises(ValidationError, match="calculate uptake probability before saving"):
        s.save()
    assert s.store.list() == []


def test_compute_then_save(exp1_scenario):
    s = DecisionSession()
    res = s.compute(exp1_scenario)
    assert s.state is SessionState.PROBABILITY_COMPUTED
    saved = s.save()
    assert s.state is SessionState.SAVED
    assert saved.uptake == round(res.probability, 2)
    assert s.store.list() == [saved]


def test_saved_snapshot_is_terminal(exp1_scenario):
    s = DecisionSession()
    s.compute(exp1_scenario)
    s.save()
    with pytest.raises(ValidationError):
        s.save()
    s.compute(exp1_scenario)
    assert s.save().name == "Scenario 2"


def test_input_change_returns_to_idle(exp1_scenario):
    s = DecisionSession()
    s.compute(exp1_scenario)
    s.invalidate()
    assert s.state is SessionState.IDLE
    assert s.probability is None
    with pytest.raises(ValidationError):
        s.save()


def test_cost_benefit_uses_last_probability(exp3_reference):
    s = DecisionSession()
    with pytest.raises(ValidationError):
        s.cost_benefit("low")
    s.compute(exp3_reference)
    cb = s.cost_benefit("high")
    assert cb.uptake_probability == s.probability
    assert cb.participant_count == 383  # 701 * 0.5459


def test_reset_clears_store(exp1_scenario):
    s = DecisionSession()
    s.compute(exp1_scenario)
    s.save()
    s.reset()
    assert s.store.list() == []
    assert s.state is SessionState.IDLE
