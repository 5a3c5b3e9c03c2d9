"""Stateful prompt generator holding one parsed persona."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from . import builder
from .parser import YamlSubsetParser, load_prompt_yaml
from .schema import ChatMessage, PromptSpec

__all__ = ["PromptGenerator"]


class PromptGenerator:
    """Load a persona file once, then build messages from it many times.

    Each load replaces the held ``PromptSpec`` entirely; a failed load
    leaves it at defaults.
    """

    def __init__(self, spec: PromptSpec | None = None):
        self.spec = spec if spec is not None else PromptSpec()
        self.loaded = spec is not None
        self._parser = YamlSubsetParser()

    def load_from_yaml(self, path: str | Path) -> bool:
        """Read and parse a persona file. Returns False if it is unreadable."""
        self.spec, self.loaded = load_prompt_yaml(path)
        return self.loaded

    def parse_yaml(self, text: str) -> bool:
        """Parse persona text already in memory. Always succeeds."""
        self.spec = self._parser.parse(text)
        self.loaded = True
        return True

    def build_system_prompt(self) -> str:
        return builder.build_system_prompt(self.spec)

    def build_messages(self, roles: Sequence[str], contents: Sequence[str]) -> list[ChatMessage]:
        return builder.build_messages(self.spec, roles, contents)

    def attach_stop(self) -> list[str] | None:
        return builder.attach_stop(self.spec)

    def maybe_attach_stop(self, body: dict[str, Any]) -> dict[str, Any]:
        return builder.maybe_attach_stop(self.spec, body)
