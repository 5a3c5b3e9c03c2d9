"""Exception hierarchy for promptgen.

Parsing and message building never raise on malformed input; these are for
the outer layers (CLI, chat client).
"""

__all__ = ["PromptGenError", "PromptLoadError", "ChatRequestError", "ProviderError"]


class PromptGenError(Exception):
    """Base class for all promptgen errors."""


class PromptLoadError(PromptGenError):
    """A persona file could not be read."""

    def __init__(self, path, reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"Could not read persona file: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ChatRequestError(PromptGenError):
    """A chat request was rejected before or during the provider call."""


class ProviderError(PromptGenError, ValueError):
    """Unsupported model provider."""
