"""
Async AnkiConnect client.

Every call is one POST of ``{"action", "version", "params"}`` to the
configured endpoint; AnkiConnect answers ``{"result", "error"}``.

Usage example:

from anki_bridge.anki_sync import AnkiConnectClient

client = AnkiConnectClient("http://127.0.0.1:8765")
reply = await client.add_note({"deckName": "Default", "modelName": "Basic",
                               "fields": {"Front": "Q", "Back": "A"}})
notes = await client.notes_info("deck:Default")

Notes:
- Calls are not retried; a failed add must not create duplicates.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx

from anki_bridge.errors import AnkiConnectError

logger = logging.getLogger(__name__)

ANKI_CONNECT_VERSION = 6


def flatten_note_info(note: Mapping[str, Any]) -> Dict[str, Any]:
    """Turn one ``notesInfo`` entry into ``{field_name: text, ..., "noteId": id}``.

    AnkiConnect wraps each field as ``{"value": ..., "order": ...}``.
    """
    flat: Dict[str, Any] = {}
    for name, wrapped in (note.get("fields") or {}).items():
        flat[name] = wrapped.get("value", "") if isinstance(wrapped, Mapping) else wrapped
    flat["noteId"] = note.get("noteId")
    return flat


class AnkiConnectClient:
    def __init__(
        self,
        url: str = "http://127.0.0.1:8765",
        *,
        version: int = ANKI_CONNECT_VERSION,
        timeout: Optional[float] = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self.version = version
        self.timeout = timeout
        self._http = http_client

    async def invoke(self, action: str, params: Mapping[str, Any] | None = None) -> Dict[str, Any]:
        """Send one action and return the raw ``{"result", "error"}`` reply."""
        payload: Dict[str, Any] = {
            "action": action,
            "version": self.version,
        }
        if params:
            payload["params"] = params

        if self._http is not None:
            response = await self._http.post(self.url, json=payload)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=payload)
        response.raise_for_status()

        parsed = response.json()
        if not isinstance(parsed, dict):
            raise AnkiConnectError(action, f"unexpected reply {parsed!r}")
        logger.debug("AnkiConnect call", extra={"action": action, "error": parsed.get("error")})
        return {"result": parsed.get("result"), "error": parsed.get("error")}

    async def call(self, action: str, params: Mapping[str, Any] | None = None) -> Any:
        """Like ``invoke`` but return ``result`` and raise on ``error``."""
        reply = await self.invoke(action, params)
        if reply["error"] is not None:
            raise AnkiConnectError(action, reply["error"])
        return reply["result"]

    async def store_media_file(
        self,
        filename: str,
        *,
        url: Optional[str] = None,
        data: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Store a media file that AnkiConnect downloads from ``url`` or decodes from base64 ``data``."""
        if (url is None) == (data is None):
            raise ValueError("store_media_file needs exactly one of url or data")
        params: Dict[str, Any] = {"filename": filename}
        if url is not None:
            params["url"] = url
        else:
            params["data"] = data
        return await self.invoke("storeMediaFile", params)

    async def add_note(self, note: Mapping[str, Any]) -> Dict[str, Any]:
        return await self.invoke("addNote", {"note": dict(note)})

    async def add_notes(self, notes: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
        return await self.invoke("addNotes", {"notes": [dict(n) for n in notes]})

    async def update_note_fields(self, note_id: int, fields: Mapping[str, str]) -> Dict[str, Any]:
        return await self.invoke("updateNote", {"note": {"id": note_id, "fields": dict(fields)}})

    async def notes_info(self, query: str) -> List[Dict[str, Any]]:
        """Return flattened notes matching an Anki search query."""
        notes = await self.call("notesInfo", {"query": query})
        return [flatten_note_info(note) for note in notes or []]
