import os
import tempfile

import pytest

# run log goes to a throwaway sqlite file, set before backend.db is imported
os.environ.setdefault("DECISION_AID_DB", os.path.join(tempfile.mkdtemp(), "decision_aid_test.db"))

from core.state_store import (  # noqa: E402
    EfficacyLevel,
    Experiment,
    OthersAttributes,
    RiskLevel,
    Scenario,
)


@pytest.fixture
def exp1_scenario():
    return Scenario(Experiment.ONE, EfficacyLevel.FIFTY, RiskLevel.SIXTEEN, 100)


@pytest.fixture
def exp3_reference():
    return Scenario(
        Experiment.THREE, EfficacyLevel.REFERENCE, RiskLevel.REFERENCE, 0,
        others=OthersAttributes(EfficacyLevel.REFERENCE, RiskLevel.REFERENCE, 0),
    )
