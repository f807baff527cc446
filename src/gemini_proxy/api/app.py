"""FastAPI app exposing the Gemini proxy endpoint."""

import json
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from gemini_proxy import __version__
from gemini_proxy.config.settings import Settings, get_settings
from gemini_proxy.core.executor import HttpxTransport, ResilientExecutor
from gemini_proxy.core.logging import get_logger, setup_logging
from gemini_proxy.core.metrics import metrics
from gemini_proxy.core.middleware import CORSHeadersMiddleware, ObservabilityMiddleware
from gemini_proxy.core.outcomes import CallResult, ErrorKind
from gemini_proxy.core.policy import RetryPolicy
from gemini_proxy.core.schemas import ProxyRequest
from gemini_proxy.llm.gemini import GeminiProxy

setup_logging(os.getenv("LOG_LEVEL", "INFO"))
logger = get_logger(__name__)

SERVICE_NAME = "gemini-proxy"
PROXY_PATHS = ("/api/gemini-proxy", "/")
GATEWAY_TIMEOUT_KINDS = (ErrorKind.RETRIES_EXHAUSTED, ErrorKind.TRANSPORT_FAILURE)


class ProxyError(Exception):
    """Failure raised before the executor is reached."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.CONFIGURATION_ERROR,
        status_code: int = 500,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    app.state.http_client = httpx.AsyncClient()
    try:
        yield
    finally:
        await app.state.http_client.aclose()


def load_settings() -> Settings:
    try:
        return get_settings()
    except ValueError as e:
        raise ProxyError(str(e)) from e


def load_policy(settings: Settings = Depends(load_settings)) -> RetryPolicy:
    try:
        return settings.retry.policy()
    except ValueError as e:
        raise ProxyError(f"Invalid retry configuration: {e}") from e


def get_executor(request: Request) -> ResilientExecutor:
    """Executor bound to the app-wide HTTP client (created lazily off-lifespan)."""
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        client = httpx.AsyncClient()
        request.app.state.http_client = client
    return ResilientExecutor(HttpxTransport(client))


def _error(
    message: str,
    status_code: int,
    details: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: dict = {"error": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(content, status_code=status_code, headers=headers)


def _decode(body: str) -> Any:
    try:
        return json.loads(body)
    except ValueError:
        return body


def to_response(result: CallResult) -> Response:
    """Map a CallResult onto the HTTP status codes the browser expects."""
    if result.ok:
        return Response(
            content=result.body or "", status_code=200, media_type="application/json"
        )
    if result.error_kind is ErrorKind.UPSTREAM_CLIENT_ERROR:
        status = result.upstream_status or 502
        return _error(
            f"Gemini API error: {status}",
            status,
            details=_decode(result.upstream_body or ""),
        )
    if result.error_kind in GATEWAY_TIMEOUT_KINDS:
        return _error(result.message or "Gateway timeout", 504)
    return _error(result.message or "Internal error", 500)


app = FastAPI(title="Gemini Proxy", version=__version__, lifespan=lifespan)
app.add_middleware(CORSHeadersMiddleware)
app.add_middleware(ObservabilityMiddleware)


@app.exception_handler(ProxyError)
async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    logger.error(f"Proxy error: {exc.message}", extra={"fields": {"error_kind": exc.kind.value}})
    metrics.record_call(0, exc.kind.value)
    return _error(exc.message, exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def method_not_allowed_handler(
    request: Request, exc: StarletteHTTPException
) -> Response:
    """Only POST and OPTIONS are routed; every other method gets the JSON 405."""
    if exc.status_code == 405:
        return _error("Method not allowed", 405, headers=exc.headers)
    return await http_exception_handler(request, exc)


async def gemini_proxy(
    request: Request,
    settings: Settings = Depends(load_settings),
    policy: RetryPolicy = Depends(load_policy),
    executor: ResilientExecutor = Depends(get_executor),
) -> Response:
    """Relay a prompt to Gemini, injecting the server-held API key."""
    try:
        body = await request.json()
        proxy_request = ProxyRequest.model_validate(body)
    except ValidationError as e:
        raise ProxyError(
            f"Invalid request body: {e.errors()[0]['msg']}", ErrorKind.INVALID_REQUEST
        ) from e
    except ValueError as e:
        raise ProxyError(f"Invalid JSON body: {e}", ErrorKind.INVALID_REQUEST) from e

    result = await GeminiProxy(executor, settings, policy).generate(proxy_request)
    if not result.ok:
        logger.error(f"Proxy error: {result.message}", extra={"fields": result.as_dict()})
    return to_response(result)


async def preflight() -> Response:
    return Response(status_code=200)


for _path in PROXY_PATHS:
    app.add_api_route(_path, gemini_proxy, methods=["POST"])
    app.add_api_route(_path, preflight, methods=["OPTIONS"])


@app.get("/health")
async def health() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse({"status": "ok", "service": SERVICE_NAME})


@app.get("/metrics")
async def get_metrics() -> JSONResponse:
    """Metrics endpoint."""
    return JSONResponse(metrics.snapshot())
