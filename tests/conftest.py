"""Shared fixtures for tracegraph tests."""

import pytest

from tracegraph import reset_scopes, reset_shape_cache


@pytest.fixture(autouse=True)
def fresh_trace_state() -> None:
    """Start every test with an empty shape cache and no active scope names."""
    reset_shape_cache()
    reset_scopes()
