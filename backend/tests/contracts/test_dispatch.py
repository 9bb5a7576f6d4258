"""
Dispatcher tests.

Scenarios:
A. failing request, no on_fail -> DefaultFailure keyed by action
B. passing request -> PassThrough
C. failing request with on_fail -> CustomRecovery with on_fail's result
D. action declared with empty params -> always PassThrough
E. duplicate declaration -> build fails (see test_builder.py)
"""

import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from action_contracts.contracts import (
    Accepted,
    CustomRecovery,
    DefaultFailure,
    PassThrough,
    build_registry,
    dispatch,
)


LENGTH_ERROR = "length must be greater than or equal to 5"


class Conn:
    """Stand-in for a host request object."""

    def __init__(self, **assigns):
        self.assigns = assigns


# =============================================================================
# SCENARIOS
# =============================================================================

class TestScenarios:

    def test_a_short_id_default_failure(self, show_registry):
        result = dispatch(show_registry, "show", Conn(), {"id": "abc"})

        assert result == DefaultFailure({"show": {"validation": {"id": [LENGTH_ERROR]}}})
        assert result.action_name == "show"
        assert result.errors == {"id": [LENGTH_ERROR]}

    def test_b_valid_id_passes_through(self, show_registry):
        conn = Conn()

        result = dispatch(show_registry, "show", conn, {"id": "abcdef"})

        assert isinstance(result, PassThrough)
        assert result.context is conn
        assert result.params == {"id": "abcdef"}

    def test_c_on_fail_recovers(self, show_registry_with_on_fail, recording_on_fail):
        conn = Conn()

        result = dispatch(show_registry_with_on_fail, "show", conn, {"id": "abc"})

        assert result == CustomRecovery("recovered")
        assert recording_on_fail.calls == [(conn, "show", {"id": [LENGTH_ERROR]})]

    def test_c_on_fail_not_called_on_success(self, show_registry_with_on_fail, recording_on_fail):
        dispatch(show_registry_with_on_fail, "show", Conn(), {"id": "abcdef"})
        assert recording_on_fail.calls == []

    def test_d_empty_params_always_pass(self, caplog):
        with caplog.at_level(logging.WARNING, logger="action_contracts.builder"):
            registry = build_registry("users", lambda c: c.declare("index", params={}))

        assert any("without params specification" in r.getMessage() for r in caplog.records)
        conn = Conn()
        for raw in ({}, {"page": "x"}, None, "garbage", [1, 2]):
            assert dispatch(registry, "index", conn, raw) == PassThrough(conn)


# =============================================================================
# LOOKUP
# =============================================================================

class TestLookup:

    @pytest.mark.parametrize("action_name", ["index", "SHOW", "", None])
    def test_unknown_action_passes_through(self, show_registry, action_name):
        conn = Conn()
        assert dispatch(show_registry, action_name, conn, {"id": "x"}) == PassThrough(conn)

    def test_exempt_action_never_hits_engine(self, caplog):
        built = []

        class Engine:
            def build(self, action_name, params):
                built.append(action_name)
                raise AssertionError("engine must not be used")

        with caplog.at_level(logging.WARNING, logger="action_contracts.builder"):
            registry = build_registry("users", lambda c: c.declare("index"), engine=Engine())

        conn = Conn()
        assert dispatch(registry, "index", conn, {"page": "1"}) == PassThrough(conn)
        assert built == []

    def test_empty_request_still_validated(self):
        calls = []

        class Unit:
            def validate(self, raw_params, request_context=None):
                calls.append(raw_params)
                return Accepted(value=request_context)

        class Engine:
            def build(self, action_name, params):
                return Unit()

        registry = build_registry(
            "users",
            lambda c: c.declare("index", params={"page": {"type": "string", "required": False}}),
            engine=Engine(),
        )

        result = dispatch(registry, "index", "ctx", {})

        assert result == PassThrough("ctx")
        assert calls == [{}]

    def test_pass_through_forwards_validator_context(self):
        processed = Conn(user_id=7)

        class Unit:
            def validate(self, raw_params, request_context=None):
                return Accepted(value=processed, params={"page": "1"})

        class Engine:
            def build(self, action_name, params):
                return Unit()

        registry = build_registry(
            "users",
            lambda c: c.declare("index", params={"page": {"type": "string"}}),
            engine=Engine(),
        )

        result = dispatch(registry, "index", Conn(), {"page": "1"})

        assert result.context is processed
        assert result.params == {"page": "1"}

    def test_registry_dispatch_shortcut(self, show_registry):
        assert show_registry.dispatch("show", "ctx", {"id": "abcdef"}) == PassThrough("ctx")


# =============================================================================
# PROPERTIES
# =============================================================================

class TestProperties:

    def test_idempotent(self, show_registry_with_on_fail):
        conn = Conn()
        results = [dispatch(show_registry_with_on_fail, "show", conn, {"id": "abc"}) for _ in range(3)]
        assert results[0] == results[1] == results[2]

        results = [dispatch(show_registry_with_on_fail, "show", conn, {"id": "abcdef"}) for _ in range(3)]
        assert results[0] == results[1] == results[2]

    def test_raw_params_not_mutated(self, show_registry):
        raw = {"id": "abc", "extra": 1}
        dispatch(show_registry, "show", Conn(), raw)
        assert raw == {"id": "abc", "extra": 1}

    def test_concurrent_dispatch(self, show_registry):
        inputs = [{"id": "abc"}, {"id": "abcdef"}] * 50

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda raw: dispatch(show_registry, "show", "ctx", raw), inputs))

        for raw, result in zip(inputs, results):
            if len(raw["id"]) < 5:
                assert isinstance(result, DefaultFailure)
            else:
                assert result == PassThrough("ctx")

    def test_on_fail_result_forwarded_verbatim(self):
        sentinel = object()
        registry = build_registry(
            "users",
            lambda c: c.declare("show", params={"id": {"type": "string"}}, on_fail=lambda conn, a, e: sentinel),
        )

        result = dispatch(registry, "show", Conn(), {})

        assert result.value is sentinel

    def test_on_fail_exceptions_propagate(self):
        def on_fail(conn, action_name, errors):
            raise LookupError("no template")

        registry = build_registry(
            "users", lambda c: c.declare("show", params={"id": {"type": "string"}}, on_fail=on_fail)
        )

        with pytest.raises(LookupError):
            dispatch(registry, "show", Conn(), {})

    def test_engine_failure_propagates(self):
        def broken(value):
            raise RuntimeError("engine bug")

        registry = build_registry(
            "users", lambda c: c.declare("show", params={"id": {"type": "string", "func": broken}})
        )

        with pytest.raises(RuntimeError, match="engine bug"):
            dispatch(registry, "show", Conn(), {"id": "abcdef"})
