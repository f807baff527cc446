"""Run the proxy locally: ``python -m gemini_proxy``."""

import uvicorn

from gemini_proxy.config.settings import get_settings
from gemini_proxy.core.logging import get_logger, setup_logging


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    get_logger(__name__).info(f"Starting Gemini proxy on {settings.host}:{settings.port}")
    uvicorn.run("gemini_proxy.api.app:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
