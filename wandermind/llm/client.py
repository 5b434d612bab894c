"""Language-model clients for Groq and Gemini.

Security: API keys come from the trip request or the environment and are
sent only to their own provider; they are never logged.

The only contract the pipeline relies on is "returns text that contains
a JSON object, or raises CredentialError / ProviderError".
"""

import logging
import time
from typing import Any, Protocol

import httpx
import openai
from openai import AsyncOpenAI
from pydantic import SecretStr

from wandermind.config import Settings, get_settings
from wandermind.errors import CredentialError, ProviderError
from wandermind.llm.prompts import Message
from wandermind.models.common import Provider
from wandermind.utils.metrics import PrometheusLLMMetrics

logger = logging.getLogger(__name__)

KEY_HELP_URLS: dict[Provider, str] = {
    Provider.groq: "https://console.groq.com/keys",
    Provider.gemini: "https://ai.google.dev/tutorials/setup",
}


def _missing_key_message(provider: Provider) -> str:
    return (
        f"Please provide a valid {provider.value.title()} API key. "
        f"You can get one at {KEY_HELP_URLS[provider]}"
    )


def _invalid_key_message(provider: Provider) -> str:
    return (
        f"Invalid API key. Please check your {provider.value.title()} API key "
        f"({KEY_HELP_URLS[provider]})."
    )


class LLMClient(Protocol):
    """Protocol for LLM client implementations."""

    provider: Provider

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Send a chat-style prompt and return the raw response text.

        Args:
            messages: System and user messages
            temperature: Sampling temperature
            max_tokens: Output token limit

        Returns:
            Response text, expected to contain a JSON object

        Raises:
            CredentialError: Key rejected by the provider
            ProviderError: Non-2xx response, network failure or empty output
        """
        ...


class GroqClient:
    """Groq-backed client using the OpenAI-compatible chat completions API."""

    provider = Provider.groq

    def __init__(
        self,
        api_key: str,
        model: str = "llama-3.1-8b-instant",
        base_url: str = "https://api.groq.com/openai/v1",
        timeout: float = 60.0,
        client: AsyncOpenAI | None = None,
        metrics: PrometheusLLMMetrics | None = None,
    ):
        """Initialize Groq client.

        Args:
            api_key: Groq API key
            model: Model name
            base_url: OpenAI-compatible endpoint
            timeout: Request timeout in seconds
            client: Optional preconfigured SDK client (for testing)
            metrics: Optional metrics recorder
        """
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)
        self.model = model
        self._metrics = metrics or PrometheusLLMMetrics()

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Generate a JSON response using Groq."""
        start = time.monotonic()
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                temperature=temperature,
                max_tokens=max_tokens,
                top_p=1,
                response_format={"type": "json_object"},
            )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            self._record(start, "credential_error")
            raise CredentialError(_invalid_key_message(self.provider)) from e
        except openai.APIStatusError as e:
            self._record(start, "status_error")
            logger.error(f"Groq request failed with status {e.status_code}: {e.message}")
            raise ProviderError(e.message or "request failed", status_code=e.status_code) from e
        except openai.APIConnectionError as e:
            self._record(start, "connection_error")
            logger.error(f"Groq request failed: {e}")
            raise ProviderError(f"API request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            self._record(start, "empty")
            raise ProviderError("No content in response")

        self._record(start, "success")
        return content

    def _record(self, start: float, outcome: str) -> None:
        elapsed_ms = (time.monotonic() - start) * 1000
        self._metrics.record_latency(self.provider.value, outcome, elapsed_ms)
        if outcome != "success":
            self._metrics.inc_error(self.provider.value, outcome)


class GeminiClient:
    """Gemini-backed client using the Generative Language REST API."""

    provider = Provider.gemini

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
        metrics: PrometheusLLMMetrics | None = None,
    ):
        """Initialize Gemini client.

        Args:
            api_key: Google AI Studio API key
            model: Model name
            base_url: API base URL
            timeout: Request timeout in seconds
            client: Optional httpx client (for testing with mocks)
            metrics: Optional metrics recorder
        """
        self._api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._metrics = metrics or PrometheusLLMMetrics()

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Generate a JSON response using Gemini."""
        system_text = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        contents = [
            {
                "role": "model" if m["role"] == "assistant" else "user",
                "parts": [{"text": m["content"]}],
            }
            for m in messages
            if m["role"] != "system"
        ]
        payload: dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
                "responseMimeType": "application/json",
            },
        }
        if system_text:
            payload["systemInstruction"] = {"parts": [{"text": system_text}]}

        url = f"{self.base_url}/models/{self.model}:generateContent"

        close_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(timeout=self._timeout)
            close_client = True

        start = time.monotonic()
        try:
            try:
                response = await client.post(
                    url, json=payload, headers={"x-goog-api-key": self._api_key}
                )
            except httpx.HTTPError as e:
                self._record(start, "connection_error")
                logger.error(f"Gemini request failed: {e}")
                raise ProviderError(f"API request failed: {e}") from e

            if response.status_code in (401, 403) or _is_invalid_key(response):
                self._record(start, "credential_error")
                raise CredentialError(_invalid_key_message(self.provider))
            if response.is_error:
                self._record(start, "status_error")
                message = _error_message(response)
                logger.error(f"Gemini request failed with status {response.status_code}: {message}")
                raise ProviderError(message, status_code=response.status_code)

            text = _candidate_text(response)
            if not text:
                self._record(start, "empty")
                raise ProviderError("No content in response")

            self._record(start, "success")
            return text
        finally:
            if close_client:
                await client.aclose()

    def _record(self, start: float, outcome: str) -> None:
        elapsed_ms = (time.monotonic() - start) * 1000
        self._metrics.record_latency(self.provider.value, outcome, elapsed_ms)
        if outcome != "success":
            self._metrics.inc_error(self.provider.value, outcome)


def _error_message(response: httpx.Response) -> str:
    """Provider error message when the body carries one."""
    try:
        data = response.json()
    except ValueError:
        return "request failed"
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
    return "request failed"


def _is_invalid_key(response: httpx.Response) -> bool:
    # Gemini reports a bad key as 400 INVALID_ARGUMENT with reason API_KEY_INVALID
    return response.status_code == 400 and "API_KEY_INVALID" in response.text


def _candidate_text(response: httpx.Response) -> str | None:
    try:
        data = response.json()
        parts = data["candidates"][0]["content"]["parts"]
    except (ValueError, KeyError, IndexError, TypeError):
        return None
    text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
    return text if text.strip() else None


def get_llm_client(
    provider: Provider,
    api_key: SecretStr | str | None = None,
    settings: Settings | None = None,
) -> LLMClient:
    """Factory function to get the client for a provider.

    Args:
        provider: Chosen provider
        api_key: Key from the request; falls back to the configured key
        settings: Settings override (defaults to cached settings)

    Returns:
        GroqClient or GeminiClient

    Raises:
        CredentialError: If no key is available for the provider
    """
    settings = settings or get_settings()

    if isinstance(api_key, SecretStr):
        api_key = api_key.get_secret_value()
    if not api_key:
        configured = settings.groq_api_key if provider is Provider.groq else settings.gemini_api_key
        api_key = configured.get_secret_value() if configured else None
    if not api_key or not api_key.strip():
        logger.warning(f"No API key available for provider {provider.value}")
        raise CredentialError(_missing_key_message(provider))

    if provider is Provider.groq:
        logger.info("Using Groq client")
        return GroqClient(
            api_key=api_key.strip(),
            model=settings.groq_model,
            base_url=settings.groq_base_url,
            timeout=settings.llm_timeout_seconds,
        )
    logger.info("Using Gemini client")
    return GeminiClient(
        api_key=api_key.strip(),
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        timeout=settings.llm_timeout_seconds,
    )
