"""Stateless completion clients: one behavior descriptor plus one input, one text out."""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from agents import Agent, ModelSettings, Runner
from openai import AsyncOpenAI, OpenAIError

from ..config import Settings
from ..errors import UpstreamCompletionError

logger = logging.getLogger(__name__)

# (behavior descriptor, input text) -> output text. Implementations must not keep
# conversation state between calls; strategies build any cumulative input themselves.
CompletionClient = Callable[[str, str], Awaitable[str]]


class OpenAIChatCompletionClient:
    """Issues one chat completion with a system and a user message per call."""

    def __init__(
        self,
        *,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        max_retries: int = 0,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._max_retries = max_retries
        self._client = client

    def _ensure_client(self) -> AsyncOpenAI:
        if self._client is None:
            try:
                self._client = AsyncOpenAI(
                    api_key=self._api_key,
                    base_url=self._base_url,
                    timeout=self._timeout,
                    max_retries=self._max_retries,
                )
            except OpenAIError as exc:
                raise UpstreamCompletionError(f"Completion service is not configured: {exc}") from exc
        return self._client

    async def __call__(self, behavior: str, input_text: str) -> str:
        client = self._ensure_client()
        messages = [
            {"role": "system", "content": behavior},
            {"role": "user", "content": input_text},
        ]
        try:
            comp = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
            )
        except OpenAIError as exc:
            logger.warning("Chat completion failed (model=%s): %s", self.model, exc)
            raise UpstreamCompletionError(f"Completion service call failed: {exc}") from exc

        choices = getattr(comp, "choices", None) or []
        if not choices:
            raise UpstreamCompletionError("Completion service returned no choices")
        content = choices[0].message.content
        if not isinstance(content, str):
            raise UpstreamCompletionError("Completion service returned no text content")
        text = content.strip()
        if not text:
            raise UpstreamCompletionError("Completion service returned empty text")
        return text

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


class AgentRunnerCompletionClient:
    """Runs a throwaway openai-agents ``Agent`` whose instructions are the behavior descriptor."""

    def __init__(self, *, model: str = "gpt-4o-mini", temperature: float = 0.7) -> None:
        self.model = model
        self.temperature = temperature

    async def __call__(self, behavior: str, input_text: str) -> str:
        agent = Agent(
            name="Coordination Participant",
            instructions=behavior,
            tools=[],
            model=self.model,
            model_settings=ModelSettings(temperature=self.temperature),
        )
        try:
            result = await Runner.run(agent, input=input_text)
        except Exception as exc:
            logger.warning("Agent runner completion failed (model=%s): %s", self.model, exc)
            raise UpstreamCompletionError(f"Completion service call failed: {exc}") from exc

        final_output = getattr(result, "final_output", None)
        if not isinstance(final_output, str):
            raise UpstreamCompletionError(f"Completion service returned non-string output: {final_output!r}")
        text = final_output.strip()
        if not text:
            raise UpstreamCompletionError("Completion service returned empty text")
        return text

    async def aclose(self) -> None:
        return None


def build_completion_client(settings: Settings, *, temperature: float) -> OpenAIChatCompletionClient | AgentRunnerCompletionClient:
    """Create the configured completion backend for the given sampling temperature."""

    backend = (settings.completion_backend or "chat").strip().lower()
    if backend == "agents":
        return AgentRunnerCompletionClient(model=settings.completion_model, temperature=temperature)
    if backend != "chat":
        raise ValueError(f"Unknown completion backend: {settings.completion_backend!r}")
    return OpenAIChatCompletionClient(
        model=settings.completion_model,
        temperature=temperature,
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.openai_timeout_seconds,
        max_retries=settings.openai_max_retries,
    )
