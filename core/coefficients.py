"""
Fixed model parameters for the uptake decision aid.

Mixed-logit estimates from three discrete-choice experiments on a type-2
diabetes health plan, literature standard errors/p-values for the WTP table,
and the cost/QALY figures for the benefit calculation. Nothing here is
estimated at runtime.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from core.state_store import EfficacyLevel, Experiment, RiskLevel, get_experiment

E, R = EfficacyLevel, RiskLevel


@dataclass(frozen=True)
class CoefficientSet:
    experiment: Experiment
    opt_out_constant: float                 # ASC_optout
    cost: float                             # per USD of monthly cost, < 0
    efficacy: Dict[EfficacyLevel, float]    # reference level omitted (0)
    risk: Dict[RiskLevel, float]
    fixed_constant: Optional[float] = None  # ASC, experiment 1
    mean_constant: Optional[float] = None   # ASC_mean, experiments 2 and 3
    efficacy_others: Dict[EfficacyLevel, float] = field(default_factory=dict)
    risk_others: Dict[RiskLevel, float] = field(default_factory=dict)
    cost_others: Optional[float] = None

    @property
    def plan_constant(self) -> float:
        # keyed on the experiment, not on which field happens to be set
        if self.experiment is Experiment.ONE:
            return self.fixed_constant
        return self.mean_constant


COEFFICIENTS: Dict[Experiment, CoefficientSet] = {
    Experiment.ONE: CoefficientSet(
        experiment=Experiment.ONE,
        opt_out_constant=-0.553,
        fixed_constant=-0.203,
        efficacy={E.FIFTY: 0.855, E.NINETY: 1.558},
        risk={R.EIGHT: -0.034, R.SIXTEEN: -0.398, R.THIRTY: -0.531},
        cost=-0.00123,
    ),
    Experiment.TWO: CoefficientSet(
        experiment=Experiment.TWO,
        opt_out_constant=-0.338,
        mean_constant=-0.159,
        efficacy={E.FIFTY: 1.031, E.NINETY: 1.780},
        risk={R.EIGHT: -0.054, R.SIXTEEN: -0.305, R.THIRTY: -0.347},
        cost=-0.00140,
    ),
    Experiment.THREE: CoefficientSet(
        experiment=Experiment.THREE,
        opt_out_constant=-0.344,
        mean_constant=-0.160,
        efficacy={E.FIFTY: 0.604, E.NINETY: 1.267},
        risk={R.EIGHT: -0.108, R.SIXTEEN: -0.218, R.THIRTY: -0.339},
        cost=-0.0007,
        efficacy_others={E.FIFTY: 0.272, E.NINETY: 0.370},
        risk_others={R.EIGHT: -0.111, R.SIXTEEN: -0.103, R.THIRTY: -0.197},
        cost_others=-0.00041,
    ),
}

# (standard error, p-value) per attribute level, as published
Literature = Dict[object, Tuple[float, float]]

WTP_LITERATURE: Dict[Experiment, Dict[str, Literature]] = {
    Experiment.ONE: {
        "self": {E.FIFTY: (0.074, 0.000), E.NINETY: (0.078, 0.000),
                 R.EIGHT: (0.085, 0.689), R.SIXTEEN: (0.086, 0.000), R.THIRTY: (0.090, 0.000)},
    },
    Experiment.TWO: {
        "self": {E.FIFTY: (0.078, 0.000), E.NINETY: (0.084, 0.000),
                 R.EIGHT: (0.090, 0.550), R.SIXTEEN: (0.089, 0.001), R.THIRTY: (0.094, 0.000)},
    },
    Experiment.THREE: {
        "self": {E.FIFTY: (0.084, 0.000), E.NINETY: (0.075, 0.000),
                 R.EIGHT: (0.084, 0.200), R.SIXTEEN: (0.088, 0.013), R.THIRTY: (0.085, 0.000)},
        "others": {E.FIFTY: (0.083, 0.000), E.NINETY: (0.076, 0.000),
                   R.EIGHT: (0.085, 0.190), R.SIXTEEN: (0.085, 0.227), R.THIRTY: (0.083, 0.017)},
    },
}

# Programme cost catalog, USD
COST_COMPONENTS: Dict[str, float] = {
    "Advertisement": 5000.00,
    "Training": 3000.00,
    "Medication (Insulin, Oral Hypoglycemics)": 2000.00,
    "Delivery Variable Costs": 1500.00,
    "Blood Glucose Monitoring": 500.00,
    "Healthcare Provider Visits": 1200.00,
    "Hospitalization for Complications": 5000.00,
    "Patient Time & Travel": 600.00,
    "Administrative & Additional Training": 1000.00,
}
FIXED_COST_ITEMS = ("Advertisement", "Training")

QALY_SCENARIOS: Dict[str, float] = {"low": 0.02, "moderate": 0.05, "high": 0.10}
TOTAL_SAMPLE_SIZE = 701
VALUE_PER_QALY = 50000


def coefficients_for(experiment) -> CoefficientSet:
    return COEFFICIENTS[get_experiment(experiment)]
