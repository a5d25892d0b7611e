from __future__ import annotations


class ChatmateError(Exception):
    """Base exception for bot errors."""


class ConfigError(ChatmateError):
    """Raised at startup when required configuration is missing or malformed."""


class CompletionError(ChatmateError):
    """Base exception for completion service failures."""


class UpstreamError(CompletionError):
    """Raised when the completion service answers with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Completion request failed ({status_code}): {body}")
        self.status_code = status_code
        self.body = body


class EmptyCompletionError(CompletionError):
    """Raised when the completion service returns no usable text."""


class PersistenceError(ChatmateError):
    """Raised when a persistent store operation fails."""


class ValidationError(ChatmateError):
    """Raised when user input is invalid."""
