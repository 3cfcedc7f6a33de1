import logging
from enum import Enum
from typing import Optional

from core.dce_model import UptakeResult, predict_uptake
from core.errors import ValidationError
from core.metrics import CostBenefit, compute_cost_benefit
from core.state_store import SavedScenario, Scenario, ScenarioStore

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    PROBABILITY_COMPUTED = "probability_computed"
    SAVED = "saved"


class DecisionSession:
    """
    One user's editing session: the last computed scenario and its uptake,
    plus the saved-scenario store.

    IDLE -> PROBABILITY_COMPUTED (compute) -> SAVED (save);
    any input change (invalidate) returns to IDLE.
    """

    def __init__(self, store: Optional[ScenarioStore] = None):
        self.store = store if store is not None else ScenarioStore()
        self.state = SessionState.IDLE
        self.scenario: Optional[Scenario] = None
        self.result: Optional[UptakeResult] = None

    @property
    def probability(self) -> Optional[float]:
        return self.result.probability if self.result else None

    def compute(self, scenario: Scenario) -> UptakeResult:
        result = predict_uptake(scenario)
        self.scenario = scenario
        self.result = result
        self.state = SessionState.PROBABILITY_COMPUTED
        return result

    def invalidate(self):
        self.scenario = None
        self.result = None
        self.state = SessionState.IDLE

    def save(self) -> SavedScenario:
        if self.state is SessionState.SAVED:
            raise ValidationError("This scenario is already saved; change an input and recalculate.")
        if self.state is not SessionState.PROBABILITY_COMPUTED:
            raise ValidationError("Please calculate uptake probability before saving the scenario.")
        saved = self.store.save(self.scenario, self.probability)
        self.state = SessionState.SAVED
        return saved

    def cost_benefit(self, qaly_scenario: str) -> CostBenefit:
        if self.result is None:
            raise ValidationError("Please calculate uptake probability before running the cost-benefit analysis.")
        return compute_cost_benefit(self.probability, qaly_scenario)

    def reset(self):
        """Start of a new session: drop saved scenarios and the last result."""
        self.store.clear()
        self.invalidate()
        logger.info("session reset")
