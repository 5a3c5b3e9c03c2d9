"""Chat client that sends persona-built messages to an LLM.

Supports OpenAI-compatible endpoints and Anthropic. When no persona is
loaded the bare transcript is sent instead.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any

from .builder import build_request_body, transcript_messages
from .config import DEFAULT_MODELS, Settings
from .generator import PromptGenerator
from .schema import ChatMessage
from .utils.errors import ChatRequestError, ProviderError
from .utils.logging import logger

if TYPE_CHECKING:
    from anthropic import Anthropic
    from openai import OpenAI

__all__ = ["ChatClient"]


class ChatClient:
    """Send a transcript, wrapped in a persona prompt, to a chat model."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        provider: str | None = None,
        model: str | None = None,
        generator: PromptGenerator | None = None,
    ):
        self.settings = settings or Settings.from_env()
        self.provider = provider or self.settings.provider
        if self.provider not in DEFAULT_MODELS:
            raise ProviderError(f"Unsupported provider: {self.provider}")
        self.model = model or self.settings.model or DEFAULT_MODELS[self.provider]
        self.generator = generator
        self._client: Anthropic | OpenAI | None = None

    @property
    def client(self) -> Anthropic | OpenAI:
        """Lazy-load the API client."""
        if self._client is None:
            if not self.settings.api_key:
                raise ChatRequestError("Missing API key")
            if self.provider == "openai":
                from openai import OpenAI
                self._client = OpenAI(
                    api_key=self.settings.api_key,
                    base_url=self.settings.base_url,
                    timeout=self.settings.timeout_s,
                )
            else:
                from anthropic import Anthropic
                self._client = Anthropic(api_key=self.settings.api_key, timeout=self.settings.timeout_s)
        return self._client

    def prepare(
        self,
        roles: Sequence[str],
        contents: Sequence[str],
    ) -> tuple[list[ChatMessage], list[str] | None]:
        """Validate the transcript and build the outgoing messages and stop list."""
        if not roles or len(roles) != len(contents):
            raise ChatRequestError("Invalid messages")

        if self.generator is not None and self.generator.loaded:
            return self.generator.build_messages(roles, contents), self.generator.attach_stop()

        logger.info("No persona loaded; sending the bare transcript")
        return transcript_messages(roles, contents), None

    def request_body(
        self,
        roles: Sequence[str],
        contents: Sequence[str],
        *,
        temperature: float | None = None,
        stream: bool = False,
    ) -> dict[str, Any]:
        """The OpenAI-style request body this client would send."""
        if not roles or len(roles) != len(contents):
            raise ChatRequestError("Invalid messages")
        spec = self.generator.spec if self.generator is not None and self.generator.loaded else None
        return build_request_body(
            spec,
            roles,
            contents,
            model=self.model,
            temperature=self._temperature(temperature),
            stream=stream,
        )

    def send(
        self,
        roles: Sequence[str],
        contents: Sequence[str],
        temperature: float | None = None,
    ) -> str:
        """Blocking completion. Returns the assistant's reply text."""
        messages, stop = self.prepare(roles, contents)
        temperature = self._temperature(temperature)
        logger.info(f"Sending {len(messages)} messages to {self.provider}/{self.model}")

        try:
            if self.provider == "openai":
                return self._call_openai(messages, stop, temperature)
            return self._call_anthropic(messages, stop, temperature)
        except ChatRequestError:
            raise
        except Exception as e:
            logger.error(f"Chat request to {self.provider} failed: {e}")
            raise ChatRequestError(f"{self.provider} request failed: {e}") from e

    def stream(
        self,
        roles: Sequence[str],
        contents: Sequence[str],
        temperature: float | None = None,
    ) -> Iterator[str]:
        """Streamed completion. Yields non-empty text deltas."""
        messages, stop = self.prepare(roles, contents)
        temperature = self._temperature(temperature)
        logger.info(f"Streaming {len(messages)} messages from {self.provider}/{self.model}")

        try:
            if self.provider == "openai":
                yield from self._stream_openai(messages, stop, temperature)
            else:
                yield from self._stream_anthropic(messages, stop, temperature)
        except ChatRequestError:
            raise
        except Exception as e:
            logger.error(f"Streaming request to {self.provider} failed: {e}")
            raise ChatRequestError(f"{self.provider} stream failed: {e}") from e

    def _temperature(self, temperature: float | None) -> float:
        return self.settings.temperature if temperature is None else temperature

    def _openai_kwargs(self, messages: list[ChatMessage], stop: list[str] | None, temperature: float) -> dict:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": temperature,
        }
        if stop:
            kwargs["stop"] = stop
        return kwargs

    def _anthropic_kwargs(self, messages: list[ChatMessage], stop: list[str] | None, temperature: float) -> dict:
        # Anthropic takes the system prompt out of band.
        system = "\n\n".join(m.content for m in messages if m.role == "system")
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.settings.max_tokens,
            "messages": [m.to_dict() for m in messages if m.role != "system"],
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system
        if stop:
            kwargs["stop_sequences"] = stop
        return kwargs

    def _call_openai(self, messages: list[ChatMessage], stop: list[str] | None, temperature: float) -> str:
        response = self.client.chat.completions.create(**self._openai_kwargs(messages, stop, temperature))
        if not response.choices:
            raise ChatRequestError("Empty choices")
        return response.choices[0].message.content or ""

    def _call_anthropic(self, messages: list[ChatMessage], stop: list[str] | None, temperature: float) -> str:
        response = self.client.messages.create(**self._anthropic_kwargs(messages, stop, temperature))
        if not response.content:
            raise ChatRequestError("Empty content")
        return response.content[0].text

    def _stream_openai(self, messages: list[ChatMessage], stop: list[str] | None, temperature: float) -> Iterator[str]:
        chunks = self.client.chat.completions.create(
            **self._openai_kwargs(messages, stop, temperature),
            stream=True,
        )
        for chunk in chunks:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                yield delta

    def _stream_anthropic(self, messages: list[ChatMessage], stop: list[str] | None, temperature: float) -> Iterator[str]:
        with self.client.messages.stream(**self._anthropic_kwargs(messages, stop, temperature)) as stream:
            for text in stream.text_stream:
                if text:
                    yield text
