"""Shared pytest fixtures and test helpers for anki_bridge tests."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, List

import httpx
import pytest

from anki_bridge.config_models import (
    AnkiConnectConfig,
    AppConfig,
    LLMConfig,
    RetryConfig,
    TTSConfig,
    UploadConfig,
)

ANKI_URL = "http://anki.test:8765"
TTS_URL = "http://tts.test/generate"


class RecordingHandler:
    """MockTransport handler that records requests and delegates to ``respond``."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]) -> None:
        self.respond = respond
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def bodies(self) -> List[Any]:
        return [json.loads(r.content) for r in self.requests]


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def app_config() -> AppConfig:
    """Complete configuration with instant retries."""
    return AppConfig(
        anki=AnkiConnectConfig(url=ANKI_URL),
        llm=LLMConfig(api_key="sk-test", base_url="http://llm.test/v1", model="test-model"),
        tts=TTSConfig(url=TTS_URL),
        retry=RetryConfig(max_attempts=3, delay_ms=0),
        upload=UploadConfig(
            deck_name="English",
            model_name="Vocab",
            word_field="Word",
            context_field="Context",
            description_field="Meaning",
        ),
    )


@pytest.fixture
def anki_reply() -> Callable[..., Callable[[httpx.Request], httpx.Response]]:
    """Build a responder answering every AnkiConnect call with ``{result, error}``."""

    def factory(result: Any = None, error: Any = None) -> Callable[[httpx.Request], httpx.Response]:
        def respond(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"result": result, "error": error})

        return respond

    return factory


@pytest.fixture
def _restore_bridge_logger() -> Any:
    """Restore the anki_bridge logger after tests that reconfigure it."""
    bridge = logging.getLogger("anki_bridge")
    handlers = bridge.handlers[:]
    level = bridge.level
    propagate = bridge.propagate
    yield
    bridge.handlers = handlers
    bridge.setLevel(level)
    bridge.propagate = propagate
