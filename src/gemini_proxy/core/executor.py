"""
Resilient remote call executor: per-attempt timeout + exponential backoff.
Why: absorb upstream 429/5xx/timeouts while keeping total latency bounded.

One invocation walks IDLE -> ATTEMPTING -> (WAITING -> ATTEMPTING)* -> DONE
and always resolves to exactly one CallResult.
"""

import asyncio
import random
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol

import httpx

from .logging import get_logger
from .outcomes import (
    AttemptOutcome,
    CallRequest,
    CallResult,
    ErrorKind,
    RetryableFailure,
    Success,
    TerminalFailure,
    UpstreamResponse,
)
from .policy import RetryPolicy, classify_status, is_2xx

_LOG = get_logger(__name__)

MAX_RETRIES_MESSAGE = "Maximum retries exceeded"

Sleep = Callable[[float], Awaitable[None]]


class ExecutorState(Enum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    WAITING = "waiting"
    DONE = "done"


class UpstreamTransport(Protocol):
    async def send(self, request: CallRequest) -> UpstreamResponse: ...


class HttpxTransport:
    """POST the request payload with a shared ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def send(self, request: CallRequest) -> UpstreamResponse:
        # timeouts are owned by AttemptDeadline, not by httpx
        response = await self._client.post(
            request.target,
            content=request.payload,
            headers=dict(request.headers),
            timeout=None,
        )
        return UpstreamResponse(status=response.status_code, body=response.text)


class AttemptDeadline:
    """Cancellation handle bounding one in-flight attempt.

    ``bind`` arms a loop timer that cancels the call task when it fires;
    ``release`` must run on every exit path and disarms both.
    """

    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        self.expired = False
        self._task: Optional["asyncio.Future[UpstreamResponse]"] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    def bind(self, task: "asyncio.Future[UpstreamResponse]") -> None:
        self._task = task
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.timeout_seconds, self._expire)

    def _expire(self) -> None:
        self.expired = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def release(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    @property
    def armed(self) -> bool:
        return self._timer is not None


class ResilientExecutor:
    """Run a CallRequest against a transport under a RetryPolicy.

    Stateless across invocations; collaborators are injected so tests can
    drive time and randomness.
    """

    def __init__(
        self,
        transport: UpstreamTransport,
        sleep: Sleep = asyncio.sleep,
        rng: Optional[random.Random] = None,
        is_success: Callable[[int], bool] = is_2xx,
    ) -> None:
        self._transport = transport
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._is_success = is_success

    async def execute(self, request: CallRequest, policy: RetryPolicy) -> CallResult:
        state = ExecutorState.IDLE

        for attempt in range(policy.max_attempts):
            state = self._transition(state, ExecutorState.ATTEMPTING, attempt)
            outcome = await self._attempt(request, policy)

            if isinstance(outcome, RetryableFailure):
                _LOG.warning(
                    f"retryable upstream failure attempt={attempt} "
                    f"status={outcome.status} cause={outcome.cause}",
                    extra={"fields": {"kind": outcome.kind.value}},
                )
                if not policy.is_last(attempt):
                    state = self._transition(state, ExecutorState.WAITING, attempt)
                    delay_ms = policy.backoff_delay_ms(attempt, self._rng)
                    await self._sleep(delay_ms / 1000.0)
                    continue

            self._transition(state, ExecutorState.DONE, attempt)
            return self._resolve(outcome, calls=attempt + 1)

        # RetryPolicy guarantees max_attempts >= 1 and the last attempt resolves
        raise RuntimeError("retry loop ended without an outcome")

    def _resolve(self, outcome: AttemptOutcome, calls: int) -> CallResult:
        if isinstance(outcome, Success):
            return CallResult.success(outcome.status, outcome.body, attempts=calls)
        if isinstance(outcome, TerminalFailure):
            _LOG.error(
                f"upstream terminal error status={outcome.status} attempts={calls}",
                extra={"fields": {"kind": outcome.kind.value}},
            )
            return CallResult.failure(
                outcome.kind,
                outcome.cause,
                upstream_status=outcome.status,
                upstream_body=outcome.body,
                attempts=calls,
            )
        return self._exhausted(outcome, calls)

    async def _attempt(self, request: CallRequest, policy: RetryPolicy) -> AttemptOutcome:
        deadline = AttemptDeadline(policy.timeout_seconds)
        task = asyncio.ensure_future(self._transport.send(request))
        deadline.bind(task)
        try:
            response = await task
        except asyncio.CancelledError:
            if not deadline.expired:
                raise
            return RetryableFailure(
                status=None,
                kind=ErrorKind.TRANSPORT_FAILURE,
                cause=f"Request timed out after {policy.timeout_ms:g} ms",
            )
        except (httpx.TransportError, OSError) as exc:
            return RetryableFailure(
                status=None,
                kind=ErrorKind.TRANSPORT_FAILURE,
                cause=str(exc) or exc.__class__.__name__,
            )
        except Exception as exc:
            _LOG.exception("unexpected transport error")
            return TerminalFailure(
                status=None,
                kind=ErrorKind.TRANSPORT_FAILURE,
                cause=str(exc) or exc.__class__.__name__,
            )
        finally:
            deadline.release()
        return classify_status(response.status, response.body, self._is_success)

    @staticmethod
    def _exhausted(outcome: RetryableFailure, calls: int) -> CallResult:
        # Transport failures keep their message; status failures surface a
        # generic message with no upstream body attached.
        if outcome.kind is ErrorKind.TRANSPORT_FAILURE:
            message = outcome.cause
        else:
            message = MAX_RETRIES_MESSAGE
        _LOG.error(f"retries exhausted after {calls} attempts: {message}")
        return CallResult.failure(ErrorKind.RETRIES_EXHAUSTED, message, attempts=calls)

    @staticmethod
    def _transition(
        current: ExecutorState, new: ExecutorState, attempt: int
    ) -> ExecutorState:
        _LOG.debug(f"executor {current.value} -> {new.value} attempt={attempt}")
        return new
