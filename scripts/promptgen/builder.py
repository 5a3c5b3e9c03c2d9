"""PromptSpec → chat messages.

Renders the system prompt and assembles the ordered message list
(system, few-shot turns, live transcript) for a chat-completion request.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .schema import ChatMessage, PromptSpec
from .utils.logging import logger

__all__ = [
    "MEMORY_HEADER",
    "TTS_DIRECTIVE",
    "attach_stop",
    "build_messages",
    "build_request_body",
    "build_system_prompt",
    "maybe_attach_stop",
    "transcript_messages",
]


TTS_DIRECTIVE = "For TTS streaming: use short sentences with clear punctuation (.,!?). No markdown."
MEMORY_HEADER = "=== Memory Context ==="


def build_system_prompt(spec: PromptSpec) -> str:
    """Render the system prompt, one directive per line."""
    lines: list[str] = []
    if spec.persona:
        lines.append(spec.persona)
    if spec.style:
        lines.append(f"Style: {spec.style}")
    if spec.constraints:
        lines.append(f"Constraints: {spec.constraints}")
    if spec.output_format:
        lines.append(f"Output format: {spec.output_format}")
    if spec.tts_friendly:
        lines.append(TTS_DIRECTIVE)

    if spec.facts:
        lines.append(MEMORY_HEADER)
        lines.extend(f"{i}) {fact}" for i, fact in enumerate(spec.facts, 1))

    return "\n".join(lines)


def transcript_messages(roles: Sequence[str], contents: Sequence[str]) -> list[ChatMessage]:
    """Pair roles with contents, stopping at the shorter sequence."""
    if len(roles) != len(contents):
        logger.warning(
            f"Transcript length mismatch: {len(roles)} roles, {len(contents)} contents; "
            f"using the first {min(len(roles), len(contents))}"
        )
    return [ChatMessage(role=role, content=content) for role, content in zip(roles, contents)]


def build_messages(
    spec: PromptSpec,
    roles: Sequence[str],
    contents: Sequence[str],
) -> list[ChatMessage]:
    """Assemble system prompt, few-shot turns and transcript, in that order."""
    messages = [ChatMessage(role="system", content=build_system_prompt(spec))]

    for example in spec.few_shots:
        if example.user:
            messages.append(ChatMessage(role="user", content=example.user))
        if example.assistant:
            messages.append(ChatMessage(role="assistant", content=example.assistant))

    messages.extend(transcript_messages(roles, contents))
    return messages


def attach_stop(spec: PromptSpec) -> list[str] | None:
    """Stop sequences to send, or None when there are none."""
    if not spec.stop:
        return None
    return list(spec.stop)


def maybe_attach_stop(spec: PromptSpec, body: dict[str, Any]) -> dict[str, Any]:
    """Set ``body["stop"]`` when the spec has stop sequences."""
    stop = attach_stop(spec)
    if stop is not None:
        body["stop"] = stop
    return body


def build_request_body(
    spec: PromptSpec | None,
    roles: Sequence[str],
    contents: Sequence[str],
    *,
    model: str,
    temperature: float = 0.7,
    stream: bool = False,
) -> dict[str, Any]:
    """Build a chat-completion request body.

    Args:
        spec: Parsed persona, or None to send the bare transcript (used when
            the persona file could not be loaded).
        roles: Transcript roles.
        contents: Transcript contents, parallel to ``roles``.
        model: Model name.
        temperature: Sampling temperature.
        stream: Ask the server for a streamed (SSE) response.

    Returns:
        Dict ready for JSON serialization.
    """
    body: dict[str, Any] = {
        "model": model,
        "stream": stream,
        "temperature": temperature,
    }

    if spec is None:
        messages = transcript_messages(roles, contents)
    else:
        messages = build_messages(spec, roles, contents)
        maybe_attach_stop(spec, body)

    body["messages"] = [message.to_dict() for message in messages]
    return body
