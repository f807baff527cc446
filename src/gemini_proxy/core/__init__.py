"""
Resilient remote call primitive: request/outcome types, retry policy, executor.
"""

from gemini_proxy.core.executor import (
    AttemptDeadline,
    ExecutorState,
    HttpxTransport,
    ResilientExecutor,
    UpstreamTransport,
)
from gemini_proxy.core.outcomes import (
    CallRequest,
    CallResult,
    ErrorKind,
    RetryableFailure,
    Success,
    TerminalFailure,
    UpstreamResponse,
)
from gemini_proxy.core.policy import RetryPolicy

__all__ = [
    "AttemptDeadline",
    "CallRequest",
    "CallResult",
    "ErrorKind",
    "ExecutorState",
    "HttpxTransport",
    "ResilientExecutor",
    "RetryPolicy",
    "RetryableFailure",
    "Success",
    "TerminalFailure",
    "UpstreamResponse",
    "UpstreamTransport",
]
