"""
Text-to-speech through a DashScope-style multimodal generation endpoint.

The endpoint answers with a temporary URL to the synthesized audio; AnkiConnect
can download it directly with ``storeMediaFile(filename, url)``.
"""
from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from anki_bridge.common.html import strip_tags
from anki_bridge.config_models import TTSConfig
from anki_bridge.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class AudioFile:
    """Generated audio: where to fetch it and a stable media filename."""
    url: str
    filename: str


def media_filename(text: str, extension: str = "mp3") -> str:
    """Filename derived from the text hash, so the same text maps to one media file."""
    text_hash = hashlib.md5(text.encode()).hexdigest()
    return f"{text_hash}.{extension}"


class TTSClient:
    """Thin async client for the synthesis endpoint."""

    def __init__(
        self,
        config: TTSConfig,
        api_key: Optional[str],
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config
        self._api_key = api_key
        self._http = http_client

    def _payload(self, text: str) -> Dict[str, Any]:
        return {
            "model": self._config.model,
            "input": {
                "text": text,
                "voice": self._config.voice,
                "language_type": self._config.language_type,
            },
        }

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self._api_key}"}
        if self._http is not None:
            return await self._http.post(self._config.url, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
            return await client.post(self._config.url, json=payload, headers=headers)

    async def generate_audio(self, text: str) -> AudioFile:
        """Synthesize ``text`` (HTML tags removed) and return the audio URL.

        Raises:
            ConfigurationError: if no API key is configured
            httpx.HTTPError: on transport failure or non-2xx status
            RuntimeError: if the response carries no audio URL
        """
        if not self._api_key:
            raise ConfigurationError(
                "Text-to-speech is not configured: set TTS_API_KEY or OPENAI_API_KEY."
            )
        plain = strip_tags(text)
        response = await self._post(self._payload(plain))
        response.raise_for_status()
        body = response.json()

        try:
            url = body["output"]["audio"]["url"]
        except (KeyError, TypeError) as e:
            raise RuntimeError(f"TTS response has no audio URL: {body!r}") from e
        if not url:
            raise RuntimeError(f"TTS response has an empty audio URL: {body!r}")

        logger.debug("Audio generated", extra={"chars": len(plain), "model": self._config.model})
        return AudioFile(url=url, filename=media_filename(plain))
