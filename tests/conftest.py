from __future__ import annotations

import copy
from pathlib import Path

import pytest
import yaml

from consentrisk import config
from consentrisk.risk_scorer import RiskScorer


@pytest.fixture(scope="session")
def rules_data() -> dict:
    with Path(config.RULES_PATH).open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def rules_copy(rules_data) -> dict:
    return copy.deepcopy(rules_data)


@pytest.fixture(scope="session")
def scorer() -> RiskScorer:
    return RiskScorer()
