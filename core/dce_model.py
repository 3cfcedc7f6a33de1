import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from core.coefficients import CoefficientSet, coefficients_for, get_experiment
from core.errors import ValidationError
from core.state_store import (
    EfficacyLevel,
    OthersAttributes,
    RiskLevel,
    Scenario,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Thresholds:
    low_below: float       # tier "low" when p < low_below
    moderate_below: float  # tier "moderate" when p < moderate_below, else "high"


UPTAKE = Thresholds(low_below=30.0, moderate_below=70.0)

TIER_MESSAGES = {
    "low": "Uptake is relatively low. Consider reducing cost or improving efficacy.",
    "moderate": "Uptake is moderate. Additional improvements could further boost health plan choice.",
    "high": "Uptake is high. Maintaining these attributes is recommended.",
}


@dataclass(frozen=True)
class UptakeResult:
    probability: float   # percent, unrounded
    tier: str
    message: str


def _resolve(scenario: Scenario, coefficients: Optional[CoefficientSet]) -> CoefficientSet:
    if coefficients is None:
        return coefficients_for(scenario.experiment)
    if coefficients.experiment is not scenario.experiment:
        raise ValidationError(
            f"Coefficients for {coefficients.experiment.label} cannot score a "
            f"{scenario.experiment.label} scenario"
        )
    return coefficients


def utility(scenario: Scenario, coefficients: Optional[CoefficientSet] = None) -> float:
    """Systematic utility of taking the plan; reference levels contribute 0."""
    coefs = _resolve(scenario, coefficients)
    u = 0.0
    u += coefs.plan_constant
    u += coefs.efficacy.get(scenario.efficacy, 0.0)
    u += coefs.risk.get(scenario.risk, 0.0)
    u += coefs.cost * scenario.cost
    if scenario.experiment.has_others:
        others = scenario.others
        u += coefs.efficacy_others.get(others.efficacy, 0.0)
        u += coefs.risk_others.get(others.risk, 0.0)
        u += coefs.cost_others * others.cost
    return u


def compute_uptake_probability(scenario: Scenario, coefficients: Optional[CoefficientSet] = None) -> float:
    """
    Probability (in percent) of choosing the plan over opting out.

    Binary logit between the plan and the opt-out alternative:
    exp(u) / (exp(u) + exp(ASC_optout)) * 100. No clamping.
    """
    coefs = _resolve(scenario, coefficients)
    u = utility(scenario, coefs)
    exp_u = math.exp(u)
    exp_opt_out = math.exp(coefs.opt_out_constant)
    prob = exp_u / (exp_u + exp_opt_out) * 100
    logger.debug("%s utility=%.6f p=%.4f", scenario.experiment.label, u, prob)
    return prob


def uptake_tier(prob: float, th: Thresholds = UPTAKE) -> str:
    if prob < th.low_below:
        return "low"
    if prob < th.moderate_below:
        return "moderate"
    return "high"


def predict_uptake(scenario: Scenario, coefficients: Optional[CoefficientSet] = None) -> UptakeResult:
    prob = compute_uptake_probability(scenario, coefficients)
    tier = uptake_tier(prob)
    return UptakeResult(probability=prob, tier=tier, message=TIER_MESSAGES[tier])


def uptake_grid(experiment, costs: Optional[Iterable[int]] = None) -> pd.DataFrame:
    """
    Uptake for every self efficacy/risk combination across a cost grid.

    Attributes for others (experiment 3) are held at the reference level with
    zero cost.
    """
    exp = get_experiment(experiment)
    if costs is None:
        costs = np.arange(0, 1001, 50)
    costs = np.asarray(list(costs), dtype=int)
    others = OthersAttributes(EfficacyLevel.REFERENCE, RiskLevel.REFERENCE, 0) if exp.has_others else None

    rows = []
    for eff in EfficacyLevel:
        for rsk in RiskLevel:
            for c in costs:
                scn = Scenario(experiment=exp, efficacy=eff, risk=rsk, cost=int(c), others=others)
                rows.append((exp.value, eff.value, rsk.value, int(c), compute_uptake_probability(scn)))
    return pd.DataFrame(rows, columns=["experiment", "efficacy", "risk", "cost", "uptake"])
