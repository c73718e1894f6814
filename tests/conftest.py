"""pytest fixtures for dnsdog tests"""

import pytest

from tests.helpers import FakeClock, RecordingSink


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return RecordingSink()
