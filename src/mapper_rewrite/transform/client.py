"""Text-transformation service client backed by Anthropic or OpenAI chat models."""

import os
from typing import Any, Literal, Protocol, runtime_checkable

from anthropic import Anthropic
import openai

from mapper_rewrite.models.config_models import DEFAULT_MAX_TOKENS, DEFAULT_MODEL
from mapper_rewrite.transform.exceptions import (
    EmptyResponseError,
    NonTextResponseError,
    ProviderConfigError,
    ServiceCallError,
)

# Constants
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.1


@runtime_checkable
class TextTransformer(Protocol):
    """Anything that turns a prompt into text, or raises a ServiceError."""

    def generate(self, prompt: str) -> str: ...


class TransformClient:
    """Sends a single prompt to an LLM and returns its text reply."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        llm_provider: str = "auto",
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Anthropic API key. Falls back to ANTHROPIC_API_KEY env var.
            model: Model ID used for every request.
            llm_provider: "auto", "anthropic" or "openai".
            max_tokens: Upper bound on the response length.
            temperature: Sampling temperature; kept low for faithful rewrites.

        Raises:
            ProviderConfigError: If no usable API key is found for the provider.
        """
        self.model: str = model
        self.max_tokens: int = max_tokens
        self.temperature: float = temperature
        self.api_key: str | None = api_key or os.getenv("ANTHROPIC_API_KEY")
        self.openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
        self._anthropic_client: Anthropic | None = None
        self._openai_client: openai.OpenAI | None = None

        if self.api_key:
            self._anthropic_client = Anthropic(api_key=self.api_key)
        if self.openai_api_key:
            self._openai_client = openai.OpenAI(api_key=self.openai_api_key)

        if not (self._anthropic_client or self._openai_client):
            raise ProviderConfigError(
                "No Anthropic or OpenAI API key found. "
                "Set ANTHROPIC_API_KEY or OPENAI_API_KEY (a .env file works too)."
            )
        self.llm_provider: Literal["anthropic", "openai", "auto"] = (
            self._normalize_provider(llm_provider)
        )

        if self.llm_provider == "anthropic" and self._anthropic_client is None:
            raise ProviderConfigError(
                "No Anthropic API key found for --llm-provider=anthropic."
            )
        if self.llm_provider == "openai" and self._openai_client is None:
            raise ProviderConfigError("No OpenAI API key found for --llm-provider=openai.")

    def _normalize_provider(
        self,
        value: str,
    ) -> Literal["anthropic", "openai", "auto"]:
        if value not in {"auto", "anthropic", "openai"}:
            raise ProviderConfigError(f"Unsupported provider: {value}")
        return value

    @property
    def provider(self) -> Literal["anthropic", "openai"]:
        if self.llm_provider == "auto":
            if self._anthropic_client is not None:
                return "anthropic"
            return "openai"
        return self.llm_provider

    def _resolve_model(self, provider: str) -> str:
        if provider == "openai" and self.model.startswith("claude-"):
            return DEFAULT_OPENAI_MODEL
        return self.model

    def generate(self, prompt: str) -> str:
        """Send the prompt and return the raw text of the first candidate.

        Raises:
            ServiceCallError: If the API call fails.
            EmptyResponseError: If the response carries no candidate output.
            NonTextResponseError: If the first candidate is not text.
        """
        provider = self.provider
        try:
            if provider == "anthropic":
                response = self._anthropic_client.messages.create(
                    model=self._resolve_model("anthropic"),
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                    messages=[{"role": "user", "content": prompt}],
                )
            else:
                response = self._openai_client.chat.completions.create(
                    model=self._resolve_model("openai"),
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                    messages=[{"role": "user", "content": prompt}],
                )
        except Exception as error:
            raise ServiceCallError(f"{provider} call failed: {error}") from error

        if provider == "openai":
            return self._parse_openai_text(response)
        return self._parse_anthropic_text(response)

    def _parse_anthropic_text(self, response: Any) -> str:
        blocks = getattr(response, "content", None) or []
        if not blocks:
            raise EmptyResponseError("Anthropic response contained no content blocks")
        block = blocks[0]
        if getattr(block, "type", None) != "text" or not isinstance(
            getattr(block, "text", None), str
        ):
            raise NonTextResponseError(
                f"Anthropic response block is '{getattr(block, 'type', None)}', not text"
            )
        return block.text

    def _parse_openai_text(self, response: Any) -> str:
        choices = getattr(response, "choices", None) or []
        if not choices:
            raise EmptyResponseError("OpenAI response contained no choices")
        message = choices[0].message
        content = getattr(message, "content", None)
        if not isinstance(content, str):
            raise NonTextResponseError("OpenAI response message has no text content")
        return content
