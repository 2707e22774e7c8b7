"""Retry module edge case tests."""

from __future__ import annotations

import asyncio
import logging as py_logging
from enum import Enum

import pytest

from coursehub.retry import ClassifiableError, ConnectivityRetrier, RetryPolicy, classify_error


class FakeClient:
    def __init__(self) -> None:
        self.calls = 0

    async def enable_network(self) -> None:
        self.calls += 1


class BrokenClient:
    async def enable_network(self) -> None:
        raise ConnectionError("name resolution failed")


async def _no_sleep(_: float) -> None:
    return None


class _StatusCode(Enum):
    UNAVAILABLE = 14


class _GrpcLikeError(Exception):
    def code(self) -> _StatusCode:
        return _StatusCode.UNAVAILABLE


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        ({"code": "unavailable"}, True),
        ({"code": "failed-precondition", "message": "index missing"}, True),
        ({"code": "not-found", "message": "went offline"}, True),
        ({"message": "network request failed"}, True),
        ({"message": "net::ERR_ABORTED"}, True),
        ({"message": "Network request failed"}, False),
        ({"message": "err_aborted"}, False),
        ({"code": "permission-denied"}, False),
        ({}, False),
        (None, False),
        (42, False),
        ("client is offline", True),
        (TimeoutError("network timeout"), True),
        (ValueError("bad input"), False),
        (ClassifiableError(code="unavailable"), True),
    ],
)
def test_classify_error_shapes(error: object, expected: bool) -> None:
    assert classify_error(error) is expected


def test_classify_error_ignores_non_string_fields() -> None:
    assert classify_error({"code": 14, "message": ["offline"]}) is False


def test_from_error_reads_grpc_style_code_method() -> None:
    details = ClassifiableError.from_error(_GrpcLikeError("boom"))

    assert details.code == "unavailable"
    assert classify_error(_GrpcLikeError("boom")) is True


def test_from_error_prefers_message_attribute_over_str() -> None:
    class WithMessage(Exception):
        message = "client is offline"

    details = ClassifiableError.from_error(WithMessage("unrelated"))

    assert details.message == "client is offline"


@pytest.mark.parametrize(
    ("kwargs", "match"),
    [
        ({"max_attempts": 0}, "max_attempts"),
        ({"initial_delay_ms": -1}, "initial_delay_ms"),
    ],
)
def test_retry_policy_rejects_invalid_values(kwargs: dict[str, float], match: str) -> None:
    with pytest.raises(ValueError, match=match):
        RetryPolicy(**kwargs)


def test_retry_policy_delay_is_linear() -> None:
    policy = RetryPolicy(initial_delay_ms=500)

    assert [policy.delay_for(attempt) for attempt in (1, 2, 3)] == [500, 1000, 1500]


def test_retry_zero_initial_delay_still_sleeps_zero() -> None:
    delays: list[float] = []

    async def sleep(seconds: float) -> None:
        delays.append(seconds)

    calls = {"count": 0}

    async def operation() -> str:
        calls["count"] += 1
        if calls["count"] < 2:
            raise RuntimeError("network down")
        return "ok"

    retrier = ConnectivityRetrier(FakeClient(), RetryPolicy(initial_delay_ms=0), sleep=sleep)

    assert asyncio.run(retrier.run(operation)) == "ok"
    assert delays == [0.0]


def test_retrier_decorator_passes_arguments_through() -> None:
    client = FakeClient()
    retrier = ConnectivityRetrier(client, sleep=_no_sleep)
    seen: list[tuple[str, int]] = []

    @retrier.retrying
    async def fetch_course(code: str, *, year: int) -> str:
        seen.append((code, year))
        if len(seen) == 1:
            raise RuntimeError("client is offline")
        return f"{code}-{year}"

    assert asyncio.run(fetch_course("040613201", year=2565)) == "040613201-2565"
    assert seen == [("040613201", 2565), ("040613201", 2565)]
    assert fetch_course.__name__ == "fetch_course"
    assert client.calls == 3


def test_retrier_ensure_connection_uses_bound_client() -> None:
    client = FakeClient()
    retrier = ConnectivityRetrier(client)

    asyncio.run(retrier.ensure_connection())

    assert client.calls == 1
    assert retrier.policy == RetryPolicy()


def test_connection_failures_are_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    retrier = ConnectivityRetrier(BrokenClient(), sleep=_no_sleep)

    async def operation() -> str:
        return "ok"

    with caplog.at_level(py_logging.DEBUG, logger="coursehub"):
        assert asyncio.run(retrier.run(operation)) == "ok"

    assert any("Failed to enable database network" in record.message for record in caplog.records)


def test_retry_attempts_are_logged_as_warnings(caplog: pytest.LogCaptureFixture) -> None:
    retrier = ConnectivityRetrier(FakeClient(), RetryPolicy(max_attempts=2), sleep=_no_sleep)

    async def operation() -> str:
        raise RuntimeError("network unreachable")

    with caplog.at_level(py_logging.WARNING, logger="coursehub"), pytest.raises(RuntimeError):
        asyncio.run(retrier.run(operation))

    warnings = [record for record in caplog.records if record.levelno == py_logging.WARNING]
    assert len(warnings) == 1
    assert "attempt 1/2" in warnings[0].getMessage()


def test_cancellation_is_not_retried() -> None:
    attempts = {"count": 0}
    retrier = ConnectivityRetrier(FakeClient(), sleep=_no_sleep)

    async def operation() -> str:
        attempts["count"] += 1
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(retrier.run(operation))

    assert attempts["count"] == 1


class _HostileCode(Exception):
    @property
    def code(self) -> str:
        raise RuntimeError("no code here")


class _HostileStr(Exception):
    def __str__(self) -> str:
        raise RuntimeError("cannot render")


class _HostileMapping(dict):
    def get(self, key: object, default: object = None) -> object:
        raise KeyError(key)


def test_classify_error_treats_failing_fields_as_absent() -> None:
    assert classify_error(_HostileCode("network down")) is True
    assert classify_error(_HostileCode("bad input")) is False
    assert classify_error(_HostileStr()) is False
    assert classify_error(_HostileMapping(code="unavailable")) is False


def test_failing_error_fields_still_surface_the_operation_error() -> None:
    retrier = ConnectivityRetrier(FakeClient(), sleep=_no_sleep)
    error = _HostileCode("permission denied")

    async def operation() -> str:
        raise error

    with pytest.raises(_HostileCode) as excinfo:
        asyncio.run(retrier.run(operation))

    assert excinfo.value is error


def test_connection_failure_is_logged_once_as_warning(caplog: pytest.LogCaptureFixture) -> None:
    retrier = ConnectivityRetrier(BrokenClient(), sleep=_no_sleep)

    async def operation() -> str:
        return "ok"

    with caplog.at_level(py_logging.DEBUG, logger="coursehub"):
        asyncio.run(retrier.run(operation))

    assert [record.levelno for record in caplog.records] == [py_logging.WARNING]
    assert "before attempt 1" in caplog.records[0].getMessage()
