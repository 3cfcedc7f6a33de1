import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from core.coefficients import (
    COST_COMPONENTS,
    FIXED_COST_ITEMS,
    QALY_SCENARIOS,
    TOTAL_SAMPLE_SIZE,
    VALUE_PER_QALY,
    WTP_LITERATURE,
    CoefficientSet,
    coefficients_for,
    get_experiment,
)
from core.errors import ValidationError
from core.state_store import EfficacyLevel, Experiment, RiskLevel, SavedScenario


@dataclass(frozen=True)
class WTPRecord:
    attribute: str
    wtp: float             # USD per month
    standard_error: float
    p_value: float


def build_wtp_table(experiment, coefficients: Optional[CoefficientSet] = None) -> List[WTPRecord]:
    """
    Willingness to pay per attribute level: coefficient / |cost|.

    Order is self efficacy, self risk, then others efficacy and others risk
    (experiment 3). The self cost coefficient is the denominator for every
    row, including the "others" rows; cost_others is deliberately not used.
    """
    exp = get_experiment(experiment)
    if coefficients is not None and coefficients.experiment is not exp:
        raise ValidationError(
            f"Coefficients for {coefficients.experiment.label} do not match {exp.label}")
    coefs = coefficients if coefficients is not None else coefficients_for(exp)
    denom = abs(coefs.cost)
    literature = WTP_LITERATURE[exp]

    groups = [("self", coefs.efficacy, coefs.risk)]
    if exp.has_others:
        groups.append(("others", coefs.efficacy_others, coefs.risk_others))

    records = []
    for who, efficacy, risk in groups:
        suffix = f" ({who.capitalize()})" if exp.has_others else ""
        for prefix, levels, table in (("Efficacy", EfficacyLevel, efficacy), ("Risk", RiskLevel, risk)):
            for level in levels:
                if level.value == "0":
                    continue
                se, p = literature[who][level]
                records.append(WTPRecord(
                    attribute=f"{prefix} {level.value}%{suffix}",
                    wtp=table[level] / denom,
                    standard_error=se / denom,
                    p_value=p,
                ))
    return records


def wtp_frame(experiment) -> pd.DataFrame:
    records = build_wtp_table(experiment)
    return pd.DataFrame([r.__dict__ for r in records],
                        columns=["attribute", "wtp", "standard_error", "p_value"])


RISK_LEVELS = [r for r in RiskLevel if r is not RiskLevel.REFERENCE]


def wtp_risk_comparison(saved: Iterable[SavedScenario]) -> Dict[str, Dict[str, float]]:
    """
    Average risk WTP per level for each experiment with a saved scenario.

    Experiment 3 averages its self and others rows.
    """
    seen = {s.experiment for s in saved}
    out = {}
    for exp in Experiment:
        if exp not in seen:
            continue
        table = {r.attribute: r.wtp for r in build_wtp_table(exp)}
        levels = {}
        for level in RISK_LEVELS:
            if exp.has_others:
                vals = [table[f"Risk {level.value}% (Self)"], table[f"Risk {level.value}% (Others)"]]
            else:
                vals = [table[f"Risk {level.value}%"]]
            levels[f"Risk {level.value}%"] = round(float(np.mean(vals)), 2)
        out[exp.label] = levels
    return out


@dataclass(frozen=True)
class CostBenefit:
    uptake_probability: float
    participant_count: int
    fixed_cost: float
    variable_cost: float
    total_cost: float
    qaly_per_participant: float
    total_qaly: float
    monetized_benefit: float
    net_benefit: float


def _check_probability(uptake_probability) -> float:
    if isinstance(uptake_probability, bool):
        raise ValidationError(f"Uptake probability must be a number (got {uptake_probability!r})")
    try:
        p = float(uptake_probability)
    except (TypeError, ValueError):
        raise ValidationError(f"Uptake probability must be a number (got {uptake_probability!r})") from None
    if math.isnan(p) or not 0 <= p <= 100:
        raise ValidationError(f"Uptake probability must be between 0 and 100 (got {uptake_probability!r})")
    return p


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def compute_cost_benefit(uptake_probability: float, qaly_scenario: str) -> CostBenefit:
    errors = []
    try:
        p = _check_probability(uptake_probability)
    except ValidationError as exc:
        errors.extend(exc.errors)
        p = None
    if qaly_scenario not in QALY_SCENARIOS:
        errors.append(f"QALY scenario must be one of {', '.join(QALY_SCENARIOS)} (got {qaly_scenario!r})")
    if errors:
        raise ValidationError(errors)

    fraction = p / 100
    fixed = sum(v for k, v in COST_COMPONENTS.items() if k in FIXED_COST_ITEMS)
    variable = sum(v for k, v in COST_COMPONENTS.items() if k not in FIXED_COST_ITEMS)
    total_cost = fixed + fraction * variable

    participants = _round_half_up(TOTAL_SAMPLE_SIZE * fraction)
    qaly_gain = QALY_SCENARIOS[qaly_scenario]
    total_qaly = participants * qaly_gain
    benefit = total_qaly * VALUE_PER_QALY

    return CostBenefit(
        uptake_probability=p,
        participant_count=participants,
        fixed_cost=fixed,
        variable_cost=fraction * variable,
        total_cost=total_cost,
        qaly_per_participant=qaly_gain,
        total_qaly=total_qaly,
        monetized_benefit=benefit,
        net_benefit=benefit - total_cost,
    )


def cost_breakdown(uptake_probability: float) -> pd.DataFrame:
    fraction = _check_probability(uptake_probability) / 100
    rows = []
    for item, amount in COST_COMPONENTS.items():
        fixed = item in FIXED_COST_ITEMS
        rows.append((item, amount, fixed, amount if fixed else amount * fraction))
    return pd.DataFrame(rows, columns=["item", "catalog_cost", "fixed", "applied_cost"])
