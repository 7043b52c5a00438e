"""
Tests for the cloud responder - prompt building and SDK error mapping.
No network: the SDK client is replaced with a fake.
"""

from types import SimpleNamespace

import anthropic
import httpx
import openai
import pytest

from gentlecare.assistant.capabilities import (
    CloudCapability,
    CloudFailure,
    CloudSuccess,
    FailureKind,
)
from gentlecare.assistant.cloud import (
    NO_CONTEXT,
    CloudAssistant,
    build_system_prompt,
    classify_failure,
)


REQUEST = httpx.Request("POST", "https://api.example.com/v1/chat/completions")


def status_error(cls, code):
    response = httpx.Response(code, request=REQUEST)
    return cls("boom", response=response, body=None)


class FakeOpenAIClient:
    """Quacks like AsyncOpenAI for chat.completions.create."""

    def __init__(self, content="Hola, estoy aqui para ayudarte.", error=None):
        self.content = content
        self.error = error
        self.requests = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    async def _create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeAnthropicClient:
    """Quacks like AsyncAnthropic for messages.create."""

    def __init__(self, text="Respira despacio.", error=None):
        self.text = text
        self.error = error
        self.requests = []
        self.messages = SimpleNamespace(create=self._create)

    async def _create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(text=self.text)])


class TestSystemPrompt:

    def test_no_context_placeholder(self):
        prompt = build_system_prompt(None)
        assert NO_CONTEXT in prompt
        assert "GentleCare AI" in prompt

    def test_context_included(self):
        prompt = build_system_prompt("Paciente: Rosa Garcia, 78 anos. ")
        assert "Paciente: Rosa Garcia" in prompt
        assert NO_CONTEXT not in prompt

    def test_addresses_patient_by_name(self, profile):
        prompt = build_system_prompt(None, profile, name="Luz")
        assert "Rosa" in prompt
        assert prompt.startswith("Eres Luz")


class TestClassifyFailure:

    @pytest.mark.parametrize("exc,kind", [
        (openai.APITimeoutError(request=REQUEST), FailureKind.TIMEOUT),
        (openai.APIConnectionError(request=REQUEST), FailureKind.NETWORK),
        (status_error(openai.AuthenticationError, 401), FailureKind.AUTH),
        (status_error(openai.RateLimitError, 429), FailureKind.RATE_LIMIT),
        (status_error(openai.InternalServerError, 500), FailureKind.PROVIDER),
        (anthropic.APITimeoutError(request=REQUEST), FailureKind.TIMEOUT),
        (anthropic.APIConnectionError(request=REQUEST), FailureKind.NETWORK),
        (status_error(anthropic.AuthenticationError, 401), FailureKind.AUTH),
        (status_error(anthropic.RateLimitError, 429), FailureKind.RATE_LIMIT),
    ])
    def test_sdk_errors(self, exc, kind):
        assert classify_failure(exc) == kind

    def test_other_errors_unclassified(self):
        assert classify_failure(RuntimeError("x")) is None


class TestCloudAssistant:

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            CloudAssistant(backend="gemini")

    def test_satisfies_capability(self):
        assert isinstance(CloudAssistant(client=FakeOpenAIClient()), CloudCapability)

    @pytest.mark.asyncio
    async def test_openai_success(self, profile):
        client = FakeOpenAIClient(content="  Hola Rosa.  ")
        cloud = CloudAssistant(model="gpt-4o-mini", client=client)

        result = await cloud.chat("como estas", "contexto", profile)

        assert result == CloudSuccess(text="Hola Rosa.")
        sent = client.requests[0]
        assert sent["model"] == "gpt-4o-mini"
        assert sent["messages"][0]["role"] == "system"
        assert "contexto" in sent["messages"][0]["content"]
        assert sent["messages"][1] == {"role": "user", "content": "como estas"}

    @pytest.mark.asyncio
    async def test_anthropic_success(self):
        client = FakeAnthropicClient()
        cloud = CloudAssistant(backend="anthropic", model="claude-haiku", client=client)

        result = await cloud.chat("tengo miedo", None, None)

        assert result == CloudSuccess(text="Respira despacio.")
        sent = client.requests[0]
        assert NO_CONTEXT in sent["system"]
        assert sent["messages"] == [{"role": "user", "content": "tengo miedo"}]

    @pytest.mark.asyncio
    async def test_connection_error_is_network_failure(self):
        client = FakeOpenAIClient(error=openai.APIConnectionError(request=REQUEST))
        result = await CloudAssistant(client=client).chat("hola", None, None)
        assert isinstance(result, CloudFailure)
        assert result.kind == FailureKind.NETWORK

    @pytest.mark.asyncio
    async def test_timeout_is_timeout_failure(self):
        client = FakeAnthropicClient(error=anthropic.APITimeoutError(request=REQUEST))
        result = await CloudAssistant(backend="anthropic", client=client).chat("hola", None, None)
        assert result.kind == FailureKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_empty_completion_is_provider_failure(self):
        client = FakeOpenAIClient(content="   ")
        result = await CloudAssistant(client=client).chat("hola", None, None)
        assert result.kind == FailureKind.PROVIDER

    @pytest.mark.asyncio
    async def test_none_completion_is_provider_failure(self):
        client = FakeOpenAIClient(content=None)
        result = await CloudAssistant(client=client).chat("hola", None, None)
        assert result.kind == FailureKind.PROVIDER

    @pytest.mark.asyncio
    async def test_non_sdk_error_propagates(self):
        client = FakeOpenAIClient(error=KeyError("choices"))
        with pytest.raises(KeyError):
            await CloudAssistant(client=client).chat("hola", None, None)

    def test_client_built_lazily(self):
        cloud = CloudAssistant(api_key="sk-test", max_retries=0)
        assert cloud._client is None
        assert isinstance(cloud.client, openai.AsyncOpenAI)
        assert cloud.client is cloud.client
