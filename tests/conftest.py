"""Shared fixtures for the POI discovery test suite.

Makes the flat top-level modules importable, keeps real credentials out of
the environment, and resets the thread-local trace between tests.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Fake keys so adapters consider themselves configured unless a test says otherwise
os.environ["GOOGLE_PLACES_API_KEY"] = "fake-places-key"
os.environ["GOOGLE_ROADS_API_KEY"] = "fake-roads-key"

from rt_trace import clear_trace  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_trace():
    """No test inherits a trace context from the previous one."""
    clear_trace()
    yield
    clear_trace()
