"""Pydantic models for persona prompt configuration.

``PromptSpec`` is filled in by the YAML-subset parser and read by the message
builder. ``ChatMessage`` is what the builder hands to the chat client.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "FewShotExample",
    "PromptSpec",
    "ChatMessage",
    "PROMPT_SPEC_SCHEMA",
]


class FewShotExample(BaseModel):
    """A demonstration user/assistant turn pair."""

    user: str = Field(default="", description="What the user says")
    assistant: str = Field(default="", description="How the assistant answers")

    def is_empty(self) -> bool:
        return not self.user and not self.assistant


class PromptSpec(BaseModel):
    """Structured representation of a persona file.

    Scalar text fields come first, then the ordered sequences. Order inside
    each sequence is the order found in the source text.
    """

    persona: str = Field(default="", description="Who the assistant is")
    style: str = Field(default="", description="Tone and register directive")
    constraints: str = Field(default="", description="Behavioral constraints")
    output_format: str = Field(default="", description="Desired response shape")
    tts_friendly: bool = Field(default=True, description="Ask for short, TTS-friendly sentences")
    facts: list[str] = Field(default_factory=list, description="Memory context, rendered as a numbered list")
    stop: list[str] = Field(default_factory=list, description="Stop sequences for the model call")
    few_shots: list[FewShotExample] = Field(default_factory=list, description="Demonstration turns")


class ChatMessage(BaseModel):
    """One role/content pair of the outgoing message list."""

    model_config = ConfigDict(frozen=True)

    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


PROMPT_SPEC_SCHEMA = PromptSpec.model_json_schema()
