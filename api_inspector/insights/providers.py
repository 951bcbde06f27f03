from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict

from ..core.config import InspectorSettings
from ..utils.errors import InsightsError, InspectorError, ProviderConfigError

logger = logging.getLogger(__name__)

PROVIDERS = ("gemini", "openai", "custom")

DEFAULT_MODELS = {
    "gemini": "gemini-2.5-flash",
    "openai": "gpt-4o",
}

# Gemini is reached through Google's OpenAI-compatible endpoint.
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
OPENAI_BASE_URL = "https://api.openai.com/v1"


class ProviderConfig(BaseModel):
    """Credentials and model selection for the insights LLM."""

    model_config = ConfigDict(frozen=True)

    provider: str = "gemini"
    api_key: str = ""
    model: Optional[str] = None
    base_url: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: InspectorSettings) -> "ProviderConfig":
        return cls(
            provider=settings.llm_provider,
            api_key=settings.llm_api_key,
            model=settings.llm_model,
            base_url=settings.llm_base_url,
        )

    def resolved_base_url(self) -> str:
        if self.provider == "gemini":
            return self.base_url or GEMINI_BASE_URL
        if self.provider == "openai":
            return self.base_url or OPENAI_BASE_URL
        if self.provider == "custom":
            if not self.base_url:
                raise ProviderConfigError("Base URL is required for custom provider", provider=self.provider)
            return self.base_url
        raise ProviderConfigError(f"Unknown provider, expected one of {', '.join(PROVIDERS)}", provider=self.provider)

    def resolved_model(self) -> str:
        model = self.model or DEFAULT_MODELS.get(self.provider)
        if not model:
            raise ProviderConfigError("Model is required", provider=self.provider)
        return model


@dataclass
class ConnectionTestResult:
    success: bool
    latency_ms: Optional[float] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {"success": self.success, "latency": self.latency_ms, "error": self.error}


class LLMClientHandle:
    """Owns the ``AsyncOpenAI`` client used for insights.

    The client is built lazily from the current ``ProviderConfig`` and is
    rebuilt when ``update`` receives different credentials. Pass the handle
    to whatever needs the LLM instead of sharing a module-level client.
    """

    def __init__(self, config: ProviderConfig, timeout: float = 60.0, client: Optional[AsyncOpenAI] = None):
        self._config = config
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: InspectorSettings) -> "LLMClientHandle":
        return cls(ProviderConfig.from_settings(settings), timeout=settings.llm_timeout)

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def is_configured(self) -> bool:
        return bool(self._config.api_key)

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.is_configured:
                raise ProviderConfigError("API key is not configured", provider=self._config.provider)
            self._client = AsyncOpenAI(
                base_url=self._config.resolved_base_url(),
                api_key=self._config.api_key,
                timeout=self.timeout,
            )
            logger.debug(f"Created LLM client for provider {self._config.provider}")
        return self._client

    async def update(self, config: ProviderConfig) -> bool:
        """Swap in new credentials. Returns True when the client was reset."""
        if config == self._config:
            return False
        await self.aclose()
        self._config = config
        logger.info(f"LLM provider configuration changed to {config.provider}")
        return True

    async def aclose(self) -> None:
        if self._client is not None:
            client, self._client = self._client, None
            await client.close()

    async def generate(self, prompt: str, temperature: float = 0.7) -> str:
        """Send a single user prompt and return the reply text."""
        try:
            response = await self.client.chat.completions.create(
                model=self._config.resolved_model(),
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
            )
        except OpenAIError as e:
            raise InsightsError(f"{self._config.provider} generation failed: {e}") from e

        if not response.choices or not response.choices[0].message.content:
            raise InsightsError(f"Empty response from {self._config.provider}")
        return response.choices[0].message.content

    async def test_connection(self) -> ConnectionTestResult:
        """Round-trip a tiny prompt; never raises."""
        start = time.perf_counter()
        try:
            await self.generate("Test connection. Reply with OK.")
        except InspectorError as e:
            latency_ms = (time.perf_counter() - start) * 1000
            logger.warning(f"LLM connection test failed: {e}")
            return ConnectionTestResult(success=False, latency_ms=latency_ms, error=str(e))
        return ConnectionTestResult(success=True, latency_ms=(time.perf_counter() - start) * 1000)
