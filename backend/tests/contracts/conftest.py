"""
Pytest fixtures for contract tests.
"""

import pytest

from action_contracts.contracts import build_registry


SHOW_PARAMS = {"id": {"type": "string", "length": {"min": 5}}}


class RecordingOnFail:
    """on_fail double that records its calls."""

    def __init__(self, result="recovered"):
        self.result = result
        self.calls = []

    def __call__(self, request_context, action_name, errors):
        self.calls.append((request_context, action_name, errors))
        return self.result


@pytest.fixture
def show_registry():
    """Registry with the canonical `show` contract and no on_fail."""
    return build_registry("users", lambda c: c.declare("show", params=SHOW_PARAMS))


@pytest.fixture
def recording_on_fail():
    return RecordingOnFail()


@pytest.fixture
def show_registry_with_on_fail(recording_on_fail):
    """Registry with the `show` contract and a recording on_fail."""
    return build_registry(
        "users",
        lambda c: c.declare("show", params=SHOW_PARAMS, on_fail=recording_on_fail),
    )
