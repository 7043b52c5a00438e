"""
Cloud responder - remote language model.

Supports: OpenAI-compatible endpoints (OpenAI, vLLM, Ollama) and Anthropic.

Every SDK error the backends document (connection, timeout, auth, rate
limit, bad status) comes back as a CloudFailure value. Anything else is a
bug and propagates.
"""

from __future__ import annotations
import logging
from typing import Optional

import anthropic
import openai
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from .capabilities import CloudFailure, CloudResult, CloudSuccess, FailureKind
from .schemas import ProfileSnapshot

logger = logging.getLogger(__name__)


BACKENDS = ("openai", "anthropic")

NO_CONTEXT = "No hay contexto disponible"

SYSTEM_PROMPT = """Eres {name}, un companero de salud compasivo para personas mayores.

INSTRUCCIONES IMPORTANTES:
- Usa lenguaje claro y sencillo
- Se paciente, calido y alentador
- Nunca des diagnosticos medicos especificos
- Siempre recomienda consultar con profesionales de salud
- Habla en un tono calmado y tranquilizador
- Responde en espanol

CONTEXTO DEL PACIENTE:
{context}
{addressing}
Responde de manera util considerando el contexto de salud del paciente.
"""


def build_system_prompt(
    context: Optional[str],
    profile: Optional[ProfileSnapshot] = None,
    name: str = "GentleCare AI",
) -> str:
    addressing = ""
    if profile is not None:
        addressing = f"\nDirigete al paciente por su nombre: {profile.first_name}.\n"
    return SYSTEM_PROMPT.format(
        name=name,
        context=context or NO_CONTEXT,
        addressing=addressing,
    )


# Most specific first: timeouts are connection errors, auth and rate
# limits are status errors.
_OPENAI_FAILURES = (
    (openai.APITimeoutError, FailureKind.TIMEOUT),
    (openai.APIConnectionError, FailureKind.NETWORK),
    (openai.AuthenticationError, FailureKind.AUTH),
    (openai.PermissionDeniedError, FailureKind.AUTH),
    (openai.RateLimitError, FailureKind.RATE_LIMIT),
    (openai.APIError, FailureKind.PROVIDER),
)

_ANTHROPIC_FAILURES = (
    (anthropic.APITimeoutError, FailureKind.TIMEOUT),
    (anthropic.APIConnectionError, FailureKind.NETWORK),
    (anthropic.AuthenticationError, FailureKind.AUTH),
    (anthropic.PermissionDeniedError, FailureKind.AUTH),
    (anthropic.RateLimitError, FailureKind.RATE_LIMIT),
    (anthropic.APIError, FailureKind.PROVIDER),
)


def classify_failure(exc: BaseException) -> Optional[FailureKind]:
    """Map an SDK exception to a FailureKind, or None if it is not an SDK error."""
    for exc_type, kind in _OPENAI_FAILURES + _ANTHROPIC_FAILURES:
        if isinstance(exc, exc_type):
            return kind
    return None


class CloudAssistant:
    """Chat completion against a remote model. Implements CloudCapability."""

    def __init__(
        self,
        backend: str = "openai",
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        max_tokens: int = 512,
        max_retries: int = 0,
        companion_name: str = "GentleCare AI",
        client=None,
    ):
        if backend not in BACKENDS:
            raise ValueError(f"Unknown backend: {backend}")
        self.backend = backend
        self.model = model
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.max_retries = max_retries
        self.companion_name = companion_name
        self._client = client

    def _build_client(self):
        if self.backend == "anthropic":
            return AsyncAnthropic(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=self.max_retries,
            )
        return AsyncOpenAI(
            base_url=self.base_url,
            api_key=self.api_key or "no-key",
            timeout=self.timeout,
            max_retries=self.max_retries,
        )

    @property
    def client(self):
        if self._client is None:
            self._client = self._build_client()
        return self._client

    async def _complete(self, system: str, query: str) -> str:
        if self.backend == "anthropic":
            resp = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[{"role": "user", "content": query}],
            )
            return resp.content[0].text if resp.content else ""

        resp = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": query},
            ],
            max_tokens=self.max_tokens,
            temperature=0.7,
        )
        return resp.choices[0].message.content or ""

    async def chat(
        self,
        query: str,
        context: Optional[str],
        profile: Optional[ProfileSnapshot],
    ) -> CloudResult:
        system = build_system_prompt(context, profile, self.companion_name)

        try:
            text = await self._complete(system, query)
        except (openai.APIError, anthropic.APIError) as e:
            kind = classify_failure(e) or FailureKind.PROVIDER
            logger.info("Cloud %s failure from %s: %s", kind.value, self.backend, e)
            return CloudFailure(kind=kind, message=str(e))

        text = text.strip()
        if not text:
            return CloudFailure(
                kind=FailureKind.PROVIDER,
                message=f"Empty completion from {self.backend}/{self.model}",
            )
        return CloudSuccess(text=text)
