"""
Pydantic models for the proxy's HTTP boundary.
Why: contract-first; reject malformed bodies before touching the upstream.
"""

from pydantic import BaseModel, ConfigDict, Field


class ProxyRequest(BaseModel):
    """Inbound body. Field names match what the browser client already sends."""

    model_config = ConfigDict(extra="ignore")

    userInput: str = Field(..., min_length=1)
    systemPrompt: str = ""
    useSearch: bool = False
