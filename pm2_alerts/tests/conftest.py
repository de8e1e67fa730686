"""Shared fixtures"""

import pytest

from .helpers import RecordingSink


@pytest.fixture
def sink():
    return RecordingSink()
