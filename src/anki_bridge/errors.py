"""Exceptions raised by the bridge services."""
from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A required endpoint, credential or setting is missing or invalid."""


class AnkiConnectError(RuntimeError):
    """AnkiConnect answered with a non-null ``error``."""

    def __init__(self, action: str, error: str) -> None:
        super().__init__(f"AnkiConnect error on action '{action}': {error}")
        self.action = action
        self.error = error


class LLMResponseError(RuntimeError):
    """The language model answered without usable JSON."""
