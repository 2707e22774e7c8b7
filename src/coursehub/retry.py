"""Retry/backoff helpers for database operations that may hit an offline client."""

from __future__ import annotations

import asyncio
import functools
import logging as py_logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Protocol, TypeVar

from coursehub.errors import ConnectivityError

logger = py_logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]
Sleep = Callable[[float], Awaitable[object]]

NETWORK_ERROR_CODES = frozenset({"unavailable", "failed-precondition"})
NETWORK_ERROR_MARKERS = ("offline", "network", "ERR_ABORTED")


class NetworkClient(Protocol):
    """Process-wide database client handle whose network link can be re-enabled."""

    async def enable_network(self) -> None: ...


@dataclass(frozen=True)
class ClassifiableError:
    code: str | None = None
    message: str | None = None

    @classmethod
    def from_error(cls, error: object) -> ClassifiableError:
        """Map an arbitrary error shape onto ``code``/``message`` without raising.

        Fields whose lookup fails for any reason are treated as absent.
        """
        if isinstance(error, ClassifiableError):
            return error
        if isinstance(error, str):
            return cls(message=error)
        code = _read_field(error, "code")
        message = _read_field(error, "message")
        if message is None and isinstance(error, BaseException):
            try:
                message = str(error)
            except Exception:
                message = None
        if callable(code):
            # grpc style errors expose code() as a method
            code = _grpc_code_name(code)
        return cls(
            code=code if isinstance(code, str) else None,
            message=message if isinstance(message, str) else None,
        )


def _read_field(error: object, name: str) -> object:
    try:
        if isinstance(error, Mapping):
            return error.get(name)
        return getattr(error, name, None)
    except Exception:
        return None


def _grpc_code_name(code: Callable[[], object]) -> str | None:
    try:
        status = code()
        name = getattr(status, "name", status)
        if isinstance(name, str):
            return name.lower().replace("_", "-")
    except Exception:
        return None
    return None


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    initial_delay_ms: float = 1000

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.initial_delay_ms < 0:
            raise ValueError(f"initial_delay_ms must not be negative, got {self.initial_delay_ms}")

    def delay_for(self, attempt: int) -> float:
        """Linear backoff in milliseconds after the given 1-based attempt."""
        return self.initial_delay_ms * attempt


def classify_error(error: object) -> bool:
    """Return True when the error looks like a transient connectivity failure."""
    details = ClassifiableError.from_error(error)
    if details.code in NETWORK_ERROR_CODES:
        return True
    if details.message is None:
        return False
    return any(marker in details.message for marker in NETWORK_ERROR_MARKERS)


async def ensure_connection(client: NetworkClient) -> None:
    try:
        await client.enable_network()
    except Exception as exc:
        raise ConnectivityError(
            "Could not enable the database network.",
            hint="Check connectivity to the database service.",
        ) from exc


async def _nudge_connection(client: NetworkClient, *, context: str) -> None:
    try:
        await ensure_connection(client)
    except ConnectivityError as exc:
        logger.warning("Failed to enable database network %s: %s", context, exc.__cause__)


async def retry_operation(
    operation: Operation[T],
    client: NetworkClient,
    max_attempts: int = 3,
    initial_delay: float = 1000,
    *,
    sleep: Sleep = asyncio.sleep,
) -> T:
    policy = RetryPolicy(max_attempts=max_attempts, initial_delay_ms=initial_delay)
    last_error: Exception | None = None

    for attempt in range(1, policy.max_attempts + 1):
        await _nudge_connection(client, context=f"before attempt {attempt}")
        try:
            return await operation()
        except Exception as exc:
            last_error = exc
            if not classify_error(exc) or attempt >= policy.max_attempts:
                raise
            logger.warning(
                "Database operation failed (attempt %s/%s), retrying: %s",
                attempt,
                policy.max_attempts,
                exc,
            )

        await sleep(policy.delay_for(attempt) / 1000)
        await _nudge_connection(client, context=f"after attempt {attempt}")

    if last_error is not None:
        raise last_error
    raise RuntimeError("Retry policy exhausted without executing operation.")


class ConnectivityRetrier:
    """Binds a database client and retry policy for repeated use."""

    def __init__(
        self,
        client: NetworkClient,
        policy: RetryPolicy | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.client = client
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def ensure_connection(self) -> None:
        await ensure_connection(self.client)

    async def run(self, operation: Operation[T]) -> T:
        return await retry_operation(
            operation,
            self.client,
            self.policy.max_attempts,
            self.policy.initial_delay_ms,
            sleep=self._sleep,
        )

    def retrying(self, func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: object, **kwargs: object) -> T:
            return await self.run(lambda: func(*args, **kwargs))

        return wrapper
