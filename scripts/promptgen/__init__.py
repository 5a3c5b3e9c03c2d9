"""promptgen - persona YAML → chat messages.

Parses a small YAML-like persona file (persona, style, constraints, output
format, facts, stop words, few-shot examples) and assembles the ordered
message list for a chat-completion request.

Example:
    >>> from promptgen import PromptGenerator
    >>> gen = PromptGenerator()
    >>> gen.load_from_yaml("Persona/Memory.yaml")
    True
    >>> messages = gen.build_messages(["user"], ["hello"])
"""

from .agent import ChatClient
from .builder import (
    TTS_DIRECTIVE,
    attach_stop,
    build_messages,
    build_request_body,
    build_system_prompt,
    maybe_attach_stop,
)
from .config import Settings
from .generator import PromptGenerator
from .parser import YamlSubsetParser, load_prompt_yaml, parse_prompt_yaml
from .schema import PROMPT_SPEC_SCHEMA, ChatMessage, FewShotExample, PromptSpec
from .utils.errors import ChatRequestError, PromptGenError, PromptLoadError, ProviderError

__all__ = [
    "attach_stop",
    "build_messages",
    "build_request_body",
    "build_system_prompt",
    "load_prompt_yaml",
    "maybe_attach_stop",
    "parse_prompt_yaml",
    "ChatClient",
    "ChatMessage",
    "ChatRequestError",
    "FewShotExample",
    "PromptGenerator",
    "PromptGenError",
    "PromptLoadError",
    "PromptSpec",
    "ProviderError",
    "Settings",
    "TTS_DIRECTIVE",
    "YamlSubsetParser",
    "PROMPT_SPEC_SCHEMA",
]
