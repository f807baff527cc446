"""
Types flowing through the resilient call executor.
Why: one explicit shape per stage (request, attempt, final result).
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Union


class ErrorKind(str, Enum):
    TRANSPORT_FAILURE = "transport_failure"
    UPSTREAM_RATE_LIMITED = "upstream_rate_limited"
    UPSTREAM_SERVER_ERROR = "upstream_server_error"
    UPSTREAM_CLIENT_ERROR = "upstream_client_error"
    RETRIES_EXHAUSTED = "retries_exhausted"
    CONFIGURATION_ERROR = "configuration_error"
    INVALID_REQUEST = "invalid_request"


@dataclass(frozen=True)
class CallRequest:
    """A single remote call: where to send it, what to send, with which headers."""

    target: str
    payload: Union[str, bytes]
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.target:
            raise ValueError("CallRequest.target must be non-empty")
        if not self.payload:
            raise ValueError("CallRequest.payload must be non-empty")
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))


@dataclass(frozen=True)
class UpstreamResponse:
    status: int
    body: str


@dataclass(frozen=True)
class Success:
    status: int
    body: str


@dataclass(frozen=True)
class RetryableFailure:
    status: Optional[int]
    kind: ErrorKind
    cause: str
    body: Optional[str] = None


@dataclass(frozen=True)
class TerminalFailure:
    status: Optional[int]
    kind: ErrorKind
    cause: str
    body: Optional[str] = None


AttemptOutcome = Union[Success, RetryableFailure, TerminalFailure]


@dataclass(frozen=True)
class CallResult:
    """Final outcome of one executor invocation."""

    ok: bool
    status: Optional[int] = None
    body: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    upstream_status: Optional[int] = None
    upstream_body: Optional[str] = None
    attempts: int = 0

    @classmethod
    def success(cls, status: int, body: str, attempts: int) -> "CallResult":
        return cls(ok=True, status=status, body=body, attempts=attempts)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        *,
        upstream_status: Optional[int] = None,
        upstream_body: Optional[str] = None,
        attempts: int = 0,
    ) -> "CallResult":
        return cls(
            ok=False,
            error_kind=kind,
            message=message,
            upstream_status=upstream_status,
            upstream_body=upstream_body,
            attempts=attempts,
        )

    def as_dict(self) -> dict:
        data: dict = {"ok": self.ok, "attempts": self.attempts}
        if self.ok:
            data.update(status=self.status, body=self.body)
        else:
            data.update(
                error_kind=self.error_kind.value if self.error_kind else None,
                message=self.message,
            )
            if self.upstream_status is not None:
                data["upstream_status"] = self.upstream_status
            if self.upstream_body is not None:
                data["upstream_body"] = self.upstream_body
        return data
