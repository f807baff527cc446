"""Gemini generateContent glue: payload building and the resilient call."""

import json
from typing import Any, Dict, Optional

from gemini_proxy.config.settings import Settings
from gemini_proxy.core.executor import ResilientExecutor
from gemini_proxy.core.logging import get_logger
from gemini_proxy.core.metrics import metrics
from gemini_proxy.core.outcomes import CallRequest, CallResult, ErrorKind
from gemini_proxy.core.policy import RetryPolicy
from gemini_proxy.core.schemas import ProxyRequest

logger = get_logger(__name__)

API_KEY_MISSING = "API Key not configured"
API_KEY_HEADER = "x-goog-api-key"
SEARCH_TOOL: Dict[str, Any] = {"google_search": {}}


def build_payload(request: ProxyRequest) -> Dict[str, Any]:
    """Translate the browser's request into a generateContent body.

    Args:
        request: Validated inbound request

    Returns:
        Dict ready to be JSON-encoded for the upstream
    """
    payload: Dict[str, Any] = {
        "contents": [{"parts": [{"text": request.userInput}]}],
    }
    if request.systemPrompt:
        payload["systemInstruction"] = {"parts": [{"text": request.systemPrompt}]}
    if request.useSearch:
        payload["tools"] = [dict(SEARCH_TOOL)]
    return payload


def build_target(settings: Settings) -> str:
    upstream = settings.upstream
    return f"{upstream.api_base}/models/{upstream.model}:generateContent"


class GeminiProxy:
    """Relay a ProxyRequest to Gemini with the server-held key."""

    def __init__(
        self,
        executor: ResilientExecutor,
        settings: Settings,
        policy: Optional[RetryPolicy] = None,
    ) -> None:
        self.executor = executor
        self.settings = settings
        self.policy = policy or settings.retry.policy()

    async def generate(self, request: ProxyRequest) -> CallResult:
        if not self.settings.upstream.api_key:
            logger.error("GEMINI_API_KEY is not set")
            metrics.record_call(0, ErrorKind.CONFIGURATION_ERROR.value)
            return CallResult.failure(ErrorKind.CONFIGURATION_ERROR, API_KEY_MISSING)

        call = CallRequest(
            target=build_target(self.settings),
            payload=json.dumps(build_payload(request)),
            headers={
                "Content-Type": "application/json",
                API_KEY_HEADER: self.settings.upstream.api_key,
            },
        )
        logger.info(
            f"Forwarding prompt to {self.settings.upstream.model} "
            f"(search={request.useSearch})"
        )
        result = await self.executor.execute(call, self.policy)

        outcome = "success" if result.ok else result.error_kind.value
        metrics.record_call(result.attempts, outcome)
        return result
