import random

import pytest

from gemini_proxy.core.outcomes import CallRequest
from tests.fakes import RecordingSleep


@pytest.fixture
def call_request() -> CallRequest:
    return CallRequest(
        target="https://upstream.test/models/m:generateContent?key=k",
        payload='{"contents": []}',
        headers={"Content-Type": "application/json"},
    )


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
