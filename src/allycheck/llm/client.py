"""
Provider-agnostic async LLM client used by the accessibility assistant.

Features:
  - One call() interface over Anthropic (Claude), OpenAI (GPT) and Google (Gemini)
  - Retry with exponential backoff on transient failures
  - Timeout enforcement and prompt size limits
  - Raises LLMCallError when a call ultimately fails, so callers can degrade
    one item at a time

Usage:
    client = create_client()   # provider auto-detected from env
    response = await client.call(Prompt(system="...", user_message="..."), role="explain")
    response.content
"""

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any

from ..security.prompt_guard import sanitize_for_prompt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60
DEFAULT_MAX_RETRIES = 2
DEFAULT_MAX_PROMPT_LENGTH = 60_000
RETRY_BASE_DELAY = 1.0
RETRY_MAX_DELAY = 15.0

PROVIDER_KEY_VARS = {
    "anthropic": ("ANTHROPIC_API_KEY",),
    "openai": ("OPENAI_API_KEY",),
    "google": ("GOOGLE_API_KEY", "GEMINI_API_KEY"),
}

DEFAULT_MODELS = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-4o-mini",
    "google": "gemini-2.0-flash",
}


class LLMCallError(RuntimeError):
    """The provider could not produce a response (after retries)."""


# =============================================================================
# DATA MODELS
# =============================================================================


@dataclass
class Prompt:
    """Stable instructions kept apart from the per-call message."""

    system: str = ""
    user_message: str = ""

    def to_flat_prompt(self) -> str:
        return "\n\n".join(p for p in (self.system, self.user_message) if p)


@dataclass
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class LLMResponse:
    content: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    model: str = ""
    provider: str = ""
    latency_ms: float = 0.0


# =============================================================================
# LLM CLIENT
# =============================================================================


class LLMClient:
    """
    Usage:
        client = LLMClient(provider="google")
        response = await client.call("Explain this issue", role="explain")
    """

    def __init__(
        self,
        provider: str = "google",
        model: str | None = None,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        max_prompt_length: int = DEFAULT_MAX_PROMPT_LENGTH,
    ):
        self._provider = provider.lower()
        if self._provider not in PROVIDER_KEY_VARS:
            raise ValueError(f"Unsupported provider: {provider}")
        self._model = model or DEFAULT_MODELS[self._provider]
        self._api_key = api_key or self._load_api_key()
        self._timeout = timeout
        self._max_retries = max_retries
        self._max_prompt_length = max_prompt_length
        self._client: Any = None
        self._total_usage = TokenUsage()

        self._init_client()
        logger.info(
            f"[LLM] Initialized {self._provider} client "
            f"(model={self._model}, timeout={self._timeout}s)"
        )

    def _load_api_key(self) -> str:
        for env_var in PROVIDER_KEY_VARS[self._provider]:
            key = os.environ.get(env_var, "").strip()
            if key:
                return key
        logger.warning(
            f"[LLM] {' / '.join(PROVIDER_KEY_VARS[self._provider])} not set -- calls will fail"
        )
        return ""

    def _init_client(self) -> None:
        """Initialize the provider-specific SDK client."""
        try:
            if self._provider == "anthropic":
                import anthropic

                self._client = anthropic.AsyncAnthropic(
                    api_key=self._api_key, timeout=self._timeout
                )
            elif self._provider == "openai":
                import openai

                self._client = openai.AsyncOpenAI(
                    api_key=self._api_key, timeout=self._timeout
                )
            else:
                from google import genai

                self._client = genai.Client(api_key=self._api_key)
        except ImportError:
            logger.error(f"[LLM] {self._provider} SDK not installed.")
            self._client = None

    async def call(
        self,
        prompt: str | Prompt,
        role: str = "assistant",
        temperature: float = 0.3,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        """
        Make an LLM call with retries.

        Args:
            prompt: String or Prompt. Strings become Prompt(user_message=prompt).
            role: Semantic hint for logs only (e.g. "explain", "summary").
            temperature: Sampling temperature.
            max_tokens: Maximum output tokens.

        Raises:
            LLMCallError: client not initialized, or every attempt failed.
        """
        if isinstance(prompt, str):
            prompt = Prompt(user_message=prompt)
        prompt = self._sanitize_prompt(prompt)

        if self._client is None:
            raise LLMCallError(f"{self._provider} client not initialized")

        start = time.time()
        last_error: Exception | None = None

        for attempt in range(self._max_retries + 1):
            try:
                response = await asyncio.wait_for(
                    self._call_provider(prompt, temperature, max_tokens),
                    timeout=self._timeout,
                )
                response.latency_ms = (time.time() - start) * 1000
                self._track_usage(response.usage)
                logger.debug(
                    f"[LLM] {self._provider}/{role}: "
                    f"{response.usage.input_tokens}in + {response.usage.output_tokens}out "
                    f"({response.latency_ms:.0f}ms)"
                )
                return response
            except Exception as e:
                last_error = e
                if self._is_retryable(e) and attempt < self._max_retries:
                    delay = min(RETRY_BASE_DELAY * (2**attempt), RETRY_MAX_DELAY)
                    logger.warning(
                        f"[LLM] Retryable error (attempt {attempt + 1}): "
                        f"{type(e).__name__}. Retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                else:
                    break

        logger.error(f"[LLM] {role} call failed after {attempt + 1} attempt(s): {last_error}")
        raise LLMCallError(f"{type(last_error).__name__}: {last_error}") from last_error

    def _sanitize_prompt(self, prompt: Prompt) -> Prompt:
        half = self._max_prompt_length // 2
        return Prompt(
            system=sanitize_for_prompt(prompt.system, max_length=half),
            user_message=sanitize_for_prompt(prompt.user_message, max_length=half),
        )

    async def _call_provider(
        self, prompt: Prompt, temperature: float, max_tokens: int
    ) -> LLMResponse:
        if self._provider == "anthropic":
            return await self._call_anthropic(prompt, temperature, max_tokens)
        if self._provider == "openai":
            return await self._call_openai(prompt, temperature, max_tokens)
        return await self._call_google(prompt, temperature, max_tokens)

    async def _call_anthropic(
        self, prompt: Prompt, temperature: float, max_tokens: int
    ) -> LLMResponse:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt.user_message}],
        }
        if prompt.system:
            kwargs["system"] = prompt.system

        response = await self._client.messages.create(**kwargs)
        usage = response.usage
        return LLMResponse(
            content=response.content[0].text,
            usage=TokenUsage(
                input_tokens=getattr(usage, "input_tokens", 0) or 0,
                output_tokens=getattr(usage, "output_tokens", 0) or 0,
            ),
            model=self._model,
            provider="anthropic",
        )

    async def _call_openai(
        self, prompt: Prompt, temperature: float, max_tokens: int
    ) -> LLMResponse:
        messages = []
        if prompt.system:
            messages.append({"role": "system", "content": prompt.system})
        messages.append({"role": "user", "content": prompt.user_message})

        response = await self._client.chat.completions.create(
            model=self._model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        usage = response.usage
        return LLMResponse(
            content=response.choices[0].message.content or "",
            usage=TokenUsage(
                input_tokens=usage.prompt_tokens if usage else 0,
                output_tokens=usage.completion_tokens if usage else 0,
            ),
            model=self._model,
            provider="openai",
        )

    async def _call_google(
        self, prompt: Prompt, temperature: float, max_tokens: int
    ) -> LLMResponse:
        from google.genai import types

        response = await self._client.aio.models.generate_content(
            model=self._model,
            contents=prompt.user_message,
            config=types.GenerateContentConfig(
                system_instruction=prompt.system or None,
                temperature=temperature,
                max_output_tokens=max_tokens,
            ),
        )
        metadata = getattr(response, "usage_metadata", None)
        return LLMResponse(
            content=response.text or "",
            usage=TokenUsage(
                input_tokens=getattr(metadata, "prompt_token_count", 0) or 0,
                output_tokens=getattr(metadata, "candidates_token_count", 0) or 0,
            ),
            model=self._model,
            provider="google",
        )

    def _is_retryable(self, error: Exception) -> bool:
        """Check if an error is transient and worth retrying."""
        retryable_types = {
            "RateLimitError",
            "APITimeoutError",
            "InternalServerError",
            "ServiceUnavailableError",
            "APIConnectionError",
            "ServerError",
            "TimeoutError",
            "ConnectError",
        }
        return type(error).__name__ in retryable_types

    def _track_usage(self, usage: TokenUsage) -> None:
        self._total_usage.input_tokens += usage.input_tokens
        self._total_usage.output_tokens += usage.output_tokens

    @property
    def total_usage(self) -> TokenUsage:
        return self._total_usage

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def model(self) -> str:
        return self._model


# =============================================================================
# FACTORY
# =============================================================================


def detect_provider() -> str | None:
    """First provider with a key set: google, then anthropic, then openai."""
    for provider in ("google", "anthropic", "openai"):
        if any(os.environ.get(var, "").strip() for var in PROVIDER_KEY_VARS[provider]):
            return provider
    return None


def create_client(
    provider: str | None = None,
    model: str | None = None,
    api_key: str | None = None,
    **kwargs,
) -> LLMClient:
    """Create a client, auto-detecting the provider from the environment."""
    if provider is None:
        provider = detect_provider()
        if provider is None:
            provider = "google"
            logger.warning("[LLM] No API key found. Defaulting to google.")
    if model is None:
        model = os.environ.get("LLM_MODEL", "").strip() or None
    return LLMClient(provider=provider, model=model, api_key=api_key, **kwargs)
