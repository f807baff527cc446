import pytest
from pydantic import ValidationError

from gemini_proxy.core.schemas import ProxyRequest


def test_proxy_request_defaults():
    request = ProxyRequest(userInput="hello")
    assert request.systemPrompt == ""
    assert request.useSearch is False


def test_proxy_request_requires_user_input():
    with pytest.raises(ValidationError):
        ProxyRequest.model_validate({"systemPrompt": "s"})
    with pytest.raises(ValidationError):
        ProxyRequest(userInput="")


def test_proxy_request_ignores_unknown_fields():
    request = ProxyRequest.model_validate({"userInput": "hi", "temperature": 2})
    assert not hasattr(request, "temperature")
