"""
Pytest configuration for the context iterator tests.

This file ensures that the project root is in the Python path so that test
files can import context_iterators, sources, models and utils.
"""

import sys
from pathlib import Path

# Add the parent directory to the Python path
parent_dir = Path(__file__).parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

import pytest

from models import reset_settings
from utils import clear_performance_metrics


class Countdown:
    """Hand-written iterator with no structural guarantees."""
    def __init__(self, n):
        self.n = n

    def __iter__(self):
        return self

    def __next__(self):
        if self.n <= 0:
            raise StopIteration
        self.n -= 1
        return self.n + 1


@pytest.fixture
def countdown():
    return Countdown


@pytest.fixture(autouse=True)
def fresh_state():
    """Default settings and empty metrics around every test"""
    reset_settings()
    clear_performance_metrics()
    yield
    reset_settings()
    clear_performance_metrics()
