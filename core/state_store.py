import logging
import numbers
import re
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import List, Optional, Tuple

import pandas as pd

from core.errors import ValidationError, missing_fields

logger = logging.getLogger(__name__)

COST_BOUNDS = (0, 1000)  # USD per month, inclusive
NOT_APPLICABLE = "N/A"


class Experiment(str, Enum):
    ONE = "1"      # self attributes, fixed constant
    TWO = "2"      # self attributes, random-coefficient mean constant
    THREE = "3"    # self + others attributes

    @property
    def label(self) -> str:
        return f"Experiment {self.value}"

    @property
    def has_others(self) -> bool:
        return self is Experiment.THREE


class EfficacyLevel(str, Enum):
    REFERENCE = "0"
    FIFTY = "50"
    NINETY = "90"


class RiskLevel(str, Enum):
    REFERENCE = "0"
    EIGHT = "8"
    SIXTEEN = "16"
    THIRTY = "30"


def get_experiment(experiment) -> Experiment:
    try:
        return Experiment(str(getattr(experiment, "value", experiment)).strip())
    except ValueError:
        raise ValidationError(f"Unknown experiment {experiment!r} (expected 1, 2 or 3)") from None


def _attribute_problems(efficacy, risk, cost, bounds, who: str) -> List[str]:
    problems = []
    if not isinstance(efficacy, EfficacyLevel):
        problems.append(f"Efficacy ({who}) must be one of 0/50/90 (got {efficacy!r})")
    if not isinstance(risk, RiskLevel):
        problems.append(f"Risk ({who}) must be one of 0/8/16/30 (got {risk!r})")
    if isinstance(cost, bool) or not isinstance(cost, numbers.Integral):
        problems.append(f"Cost ({who}) must be an integer (got {cost!r})")
    elif bounds is not None and not bounds[0] <= cost <= bounds[1]:
        problems.append(f"Cost ({who}) must be between {bounds[0]} and {bounds[1]} (got {cost})")
    return problems


@dataclass(frozen=True)
class OthersAttributes:
    efficacy: EfficacyLevel
    risk: RiskLevel
    cost: int
    cost_bounds: Optional[Tuple[int, int]] = field(default=COST_BOUNDS, compare=False, repr=False)

    def __post_init__(self):
        problems = _attribute_problems(self.efficacy, self.risk, self.cost, self.cost_bounds, "Others")
        if problems:
            raise ValidationError(problems, prefix="Invalid scenario: ")


@dataclass(frozen=True)
class Scenario:
    """
    One validated scenario. Levels must be enum members and costs integers
    within ``cost_bounds`` (None for unbounded); every problem is reported
    in a single ValidationError.
    """
    experiment: Experiment
    efficacy: EfficacyLevel
    risk: RiskLevel
    cost: int                                  # monthly USD, self
    others: Optional[OthersAttributes] = None  # experiment 3 only
    cost_bounds: Optional[Tuple[int, int]] = field(default=COST_BOUNDS, compare=False, repr=False)

    def __post_init__(self):
        problems = []
        if not isinstance(self.experiment, Experiment):
            problems.append(f"Experiment must be one of 1/2/3 (got {self.experiment!r})")
        problems += _attribute_problems(self.efficacy, self.risk, self.cost, self.cost_bounds, "Self")
        if self.others is not None and not isinstance(self.others, OthersAttributes):
            problems.append(f"others must be OthersAttributes (got {self.others!r})")
        elif isinstance(self.experiment, Experiment):
            if self.experiment.has_others and self.others is None:
                problems.append(f"{self.experiment.label} requires attributes for others")
            if not self.experiment.has_others and self.others is not None:
                problems.append(f"{self.experiment.label} has no attributes for others")
        if problems:
            raise ValidationError(problems, prefix="Invalid scenario: ")


def baseline_scenario(experiment: Experiment = Experiment.ONE) -> Scenario:
    experiment = get_experiment(experiment)
    others = None
    if experiment.has_others:
        others = OthersAttributes(EfficacyLevel.REFERENCE, RiskLevel.REFERENCE, 0)
    return Scenario(
        experiment=experiment,
        efficacy=EfficacyLevel.REFERENCE,
        risk=RiskLevel.REFERENCE,
        cost=0,
        others=others,
    )


_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")


def _parse_level(raw, enum_cls, label: str, missing: list, invalid: list):
    value = getattr(raw, "value", raw)
    if value is None or str(value).strip() == "":
        missing.append(label)
        return None
    try:
        return enum_cls(str(value).strip())
    except ValueError:
        allowed = "/".join(m.value for m in enum_cls)
        invalid.append(f"{label} must be one of {allowed} (got {raw!r})")
        return None


def _parse_cost(raw, label: str, missing: list, invalid: list, bounds=COST_BOUNDS):
    if raw is None or str(raw).strip() == "":
        missing.append(label)
        return None
    if isinstance(raw, bool):
        invalid.append(f"{label} must be an integer (got {raw!r})")
        return None
    if isinstance(raw, numbers.Integral):
        value = int(raw)
    elif isinstance(raw, float):
        if not raw.is_integer():
            invalid.append(f"{label} must be an integer (got {raw!r})")
            return None
        value = int(raw)
    else:
        text = str(raw).strip()
        if not _INTEGER_TEXT.fullmatch(text):
            invalid.append(f"{label} must be an integer (got {raw!r})")
            return None
        value = int(text)
    if bounds is not None:
        lo, hi = bounds
        if not lo <= value <= hi:
            invalid.append(f"{label} must be between {lo} and {hi} (got {value})")
            return None
    return value


def build_scenario(experiment, efficacy, risk, cost,
                   efficacy_others=None, risk_others=None, cost_others=None,
                   cost_bounds=COST_BOUNDS) -> Scenario:
    """
    Build a Scenario from raw form values.

    Every field is checked before anything is constructed; all missing or
    invalid fields are reported together in one ValidationError. Fields for
    others are only read for experiment 3. ``cost_bounds=None`` accepts any
    integer cost.
    """
    missing: List[str] = []
    invalid: List[str] = []

    exp = _parse_level(experiment, Experiment, "Experiment", missing, invalid)
    eff = _parse_level(efficacy, EfficacyLevel, "Efficacy (Self)", missing, invalid)
    rsk = _parse_level(risk, RiskLevel, "Risk (Self)", missing, invalid)
    cst = _parse_cost(cost, "Cost (Self)", missing, invalid, cost_bounds)

    others = None
    if exp is not None and exp.has_others:
        eff_o = _parse_level(efficacy_others, EfficacyLevel, "Efficacy (Others)", missing, invalid)
        rsk_o = _parse_level(risk_others, RiskLevel, "Risk (Others)", missing, invalid)
        cst_o = _parse_cost(cost_others, "Cost (Others)", missing, invalid, cost_bounds)
        if not (missing or invalid):
            others = OthersAttributes(eff_o, rsk_o, cst_o, cost_bounds=cost_bounds)

    if missing and not invalid:
        raise missing_fields(missing)
    if missing or invalid:
        problems = ([f"missing {m}" for m in missing]) + invalid
        raise ValidationError(problems, prefix="Invalid scenario: ")

    return Scenario(experiment=exp, efficacy=eff, risk=rsk, cost=cst, others=others,
                    cost_bounds=cost_bounds)


@dataclass(frozen=True)
class SavedScenario:
    name: str
    experiment: Experiment
    efficacy: EfficacyLevel
    risk: RiskLevel
    cost: int
    efficacy_others: Optional[EfficacyLevel]
    risk_others: Optional[RiskLevel]
    cost_others: Optional[int]
    uptake: float                    # percent, 2 decimals

    @property
    def scenario(self) -> Scenario:
        others = None
        if self.experiment.has_others:
            others = OthersAttributes(self.efficacy_others, self.risk_others, self.cost_others,
                                      cost_bounds=None)
        return Scenario(self.experiment, self.efficacy, self.risk, self.cost, others, cost_bounds=None)

    def as_row(self) -> dict:
        """Flat export row with the stable field names used by tables and reports."""
        row = asdict(self)
        row["experiment"] = self.experiment.label
        for key in ("efficacy", "risk", "efficacy_others", "risk_others"):
            value = row[key]
            row[key] = value.value if value is not None else NOT_APPLICABLE
        if row["cost_others"] is None:
            row["cost_others"] = NOT_APPLICABLE
        return row


class ScenarioStore:
    """Append-only list of saved scenarios for one session."""

    def __init__(self):
        self._saved: List[SavedScenario] = []

    def __len__(self):
        return len(self._saved)

    def save(self, scenario: Scenario, probability: float) -> SavedScenario:
        if probability is None or probability <= 0:
            raise ValidationError("Please calculate uptake probability before saving the scenario.")
        others = scenario.others
        saved = SavedScenario(
            name=f"Scenario {len(self._saved) + 1}",
            experiment=scenario.experiment,
            efficacy=scenario.efficacy,
            risk=scenario.risk,
            cost=scenario.cost,
            efficacy_others=others.efficacy if others else None,
            risk_others=others.risk if others else None,
            cost_others=others.cost if others else None,
            uptake=round(float(probability), 2),
        )
        self._saved.append(saved)
        logger.info("saved %s (%s, uptake=%.2f%%)", saved.name, saved.experiment.label, saved.uptake)
        return saved

    def list(self) -> List[SavedScenario]:
        return list(self._saved)

    def filter(self, experiment: Optional[Experiment] = None) -> List[SavedScenario]:
        if experiment is None:
            return self.list()
        experiment = get_experiment(experiment)
        return [s for s in self._saved if s.experiment is experiment]

    def clear(self):
        self._saved = []

    def to_frame(self, experiment: Optional[Experiment] = None) -> pd.DataFrame:
        columns = ["name", "experiment", "efficacy", "risk", "cost",
                   "efficacy_others", "risk_others", "cost_others", "uptake"]
        rows = [s.as_row() for s in self.filter(experiment)]
        return pd.DataFrame(rows, columns=columns)
