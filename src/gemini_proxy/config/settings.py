"""Configuration settings for the proxy, read from the environment."""
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from gemini_proxy.core.policy import RetryPolicy

load_dotenv()

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash-preview-09-2025"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass
class UpstreamSettings:
    api_key: str = ""
    model: str = DEFAULT_MODEL
    api_base: str = DEFAULT_API_BASE


@dataclass
class RetrySettings:
    max_attempts: int = 3
    base_delay_ms: int = 200
    jitter_ms: int = 120
    timeout_ms: int = 25_000

    def policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay_ms=self.base_delay_ms,
            timeout_ms=self.timeout_ms,
            jitter_ms=self.jitter_ms,
        )


@dataclass
class Settings:
    upstream: UpstreamSettings = field(default_factory=UpstreamSettings)
    retry: RetrySettings = field(default_factory=RetrySettings)
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000


def get_settings() -> Settings:
    """Build settings from the current environment.

    Called per request so a rotated or late-provisioned GEMINI_API_KEY is
    picked up without a restart.
    """
    return Settings(
        upstream=UpstreamSettings(
            api_key=os.getenv("GEMINI_API_KEY", ""),
            model=os.getenv("GEMINI_MODEL", DEFAULT_MODEL),
            api_base=os.getenv("GEMINI_API_BASE", DEFAULT_API_BASE).rstrip("/"),
        ),
        retry=RetrySettings(
            max_attempts=_env_int("PROXY_MAX_ATTEMPTS", 3),
            base_delay_ms=_env_int("PROXY_BASE_DELAY_MS", 200),
            jitter_ms=_env_int("PROXY_JITTER_MS", 120),
            timeout_ms=_env_int("PROXY_TIMEOUT_MS", 25_000),
        ),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_env_int("PORT", 8000),
    )
