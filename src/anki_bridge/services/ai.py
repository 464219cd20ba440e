from __future__ import annotations

import logging
from typing import Optional

import httpx
from langchain_core.runnables import Runnable

from anki_bridge.common.llm import build_llm
from anki_bridge.common.reliability import retry_async
from anki_bridge.common.tts import TTSClient
from anki_bridge.config_models import AppConfig
from anki_bridge.errors import ConfigurationError
from anki_bridge.pipelines.refine.chains import refine_note
from anki_bridge.pipelines.refine.models import RefinedNote, RefineRequest
from anki_bridge.services.contracts import AudioClip

logger = logging.getLogger(__name__)


class AIService:
    """Implements ``AI_CONTRACT``.

    Both methods retry with the configured ``RetryConfig``. Configuration is
    checked before the first attempt, so a missing key fails once.

    Args:
        config: process configuration
        http_client: client for the TTS endpoint, a fresh one per call if None
        llm: chat model to use instead of one built from ``config.llm``
    """

    def __init__(
        self,
        config: AppConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        llm: Optional[Runnable] = None,
    ) -> None:
        self._config = config
        self._http = http_client
        self._llm = llm

    def _refine_llm(self) -> Runnable:
        if self._llm is not None:
            return self._llm
        return build_llm(self._config.llm, self._config.llm.refine_temperature, json_mode=True)

    async def generate_audio(self, text: str) -> AudioClip:
        api_key = self._config.tts_api_key
        if not api_key:
            raise ConfigurationError("Text-to-speech is not configured: set TTS_API_KEY or OPENAI_API_KEY.")
        tts = TTSClient(self._config.tts, api_key, http_client=self._http)
        retry = self._config.retry
        audio = await retry_async(lambda: tts.generate_audio(text), retry.max_attempts, retry.delay_ms)
        logger.info("Audio ready", extra={"media_filename": audio.filename})
        return AudioClip(url=audio.url)

    async def refine_note(self, data: RefineRequest) -> RefinedNote:
        llm = self._refine_llm()
        retry = self._config.retry
        return await refine_note(data, llm, max_attempts=retry.max_attempts, delay_ms=retry.delay_ms)
