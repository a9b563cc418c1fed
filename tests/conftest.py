import random

import pytest

from leadflow.automation.config import RunConfig
from tests.fakes import RecordingPacer


@pytest.fixture
def events():
    return []


@pytest.fixture
def pacer(events):
    return RecordingPacer(events, rng=random.Random(1234))


@pytest.fixture
def run_config():
    return RunConfig(
        total_leads=10,
        message_template="Hi {{firstName}}, would love to connect.",
        lead_list_id="7371658687360155648",
        min_delay_seconds=1,
        max_delay_seconds=3,
    )
