from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from anki_bridge.anki_sync.anki_connect import AnkiConnectClient
from anki_bridge.config_models import AnkiConnectConfig
from anki_bridge.services.contracts import AnkiConnectReply, NoteRecord

logger = logging.getLogger(__name__)


class AnkiService:
    """Implements ``ANKI_CONTRACT`` with one AnkiConnect call per method."""

    def __init__(self, config: AnkiConnectConfig, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self._config = config
        self._http = http_client

    def _client(self) -> AnkiConnectClient:
        return AnkiConnectClient(
            self._config.require_url(),
            version=self._config.version,
            timeout=self._config.timeout_seconds,
            http_client=self._http,
        )

    async def store_media_file(self, filename: str, url: str) -> AnkiConnectReply:
        reply = await self._client().store_media_file(filename, url=url)
        return AnkiConnectReply.model_validate(reply)

    async def add_note(self, note: NoteRecord) -> AnkiConnectReply:
        reply = await self._client().add_note(note.model_dump(by_alias=True))
        if reply["error"] is None:
            logger.info("Note added", extra={"deck": note.deck_name, "note_id": reply["result"]})
        return AnkiConnectReply.model_validate(reply)

    async def update_note_fields(self, note_id: int, fields: Dict[str, str]) -> AnkiConnectReply:
        reply = await self._client().update_note_fields(note_id, fields)
        return AnkiConnectReply.model_validate(reply)

    async def notes_info(self, query: str) -> List[Dict[str, Any]]:
        return await self._client().notes_info(query)
