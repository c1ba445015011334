"""LLM integration for the agent loop.

This module wraps an OpenAI-compatible chat completions endpoint (Groq by
default) behind a small client that returns ModelReply values and turns
every API failure into a single UpstreamModelError.
"""

from typing import Any, Protocol

from openai import AsyncOpenAI, OpenAIError

from mira_agent.config import Settings
from mira_agent.core.logging import ErrorIds, logError
from mira_agent.models.chat import ModelReply, ToolCall


class UpstreamModelError(Exception):
    """Raised when the model API call fails or returns an unusable response."""


class ModelClient(Protocol):
    """Anything that can run one chat completion round-trip."""

    async def complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> ModelReply: ...


def create_openai_client(settings: Settings) -> AsyncOpenAI:
    """Create an AsyncOpenAI client for the configured endpoint.

    Args:
        settings: Backend settings carrying base URL and API key.

    Returns:
        An AsyncOpenAI client instance.

    Raises:
        ValueError: If no API key is configured.
    """
    if not settings.model_api_key:
        raise ValueError(
            "MODEL_API_KEY (or GROQ_API_KEY) environment variable must be set."
        )
    return AsyncOpenAI(base_url=settings.model_base_url, api_key=settings.model_api_key)


class OpenAIChatClient:
    """ModelClient backed by the openai SDK chat completions API."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        temperature: float = 0.6,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIChatClient":
        return cls(
            create_openai_client(settings),
            model=settings.model,
            temperature=settings.temperature,
        )

    @property
    def model(self) -> str:
        return self._model

    async def complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> ModelReply:
        """Call the model once with tool calling enabled.

        Args:
            messages: Ordered chat messages, system prompt first.
            tools: Function-tool schemas offered to the model.

        Returns:
            The assistant message as a ModelReply.

        Raises:
            UpstreamModelError: On network/auth/quota failures or an empty response.
        """
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,  # type: ignore[arg-type]
                tools=tools,  # type: ignore[arg-type]
                tool_choice="auto",
                temperature=self._temperature,
            )
        except OpenAIError as e:
            logError(ErrorIds.LLM_API_ERROR, f"LLM API call failed: {e}", exc_info=True)
            raise UpstreamModelError(str(e)) from e

        if not response.choices:
            logError(ErrorIds.LLM_MALFORMED_RESPONSE, "LLM returned empty choices list")
            raise UpstreamModelError("Model returned no choices")

        message = response.choices[0].message
        tool_calls = [
            ToolCall(
                id=call.id,
                name=call.function.name,
                arguments_json=call.function.arguments or "",
            )
            for call in message.tool_calls or []
            if getattr(call, "function", None) is not None
        ]
        return ModelReply(content=message.content, tool_calls=tool_calls)
