"""
Contracts of the services exposed through the tunnel.

Wire names are the camelCase names the browser client calls; the Python
service methods are snake_case.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from anki_bridge.pipelines.refine.models import RefinedNote, RefineRequest
from anki_bridge.rpc.contract import Action, Param, ServiceContract


class NoteRecord(BaseModel):
    """A note about to be submitted to AnkiConnect."""
    model_config = ConfigDict(populate_by_name=True)

    deck_name: str = Field(..., alias="deckName", description="Target deck")
    model_name: str = Field(..., alias="modelName", description="Note type")
    fields: Dict[str, str] = Field(default_factory=dict, description="Field name -> field text")


class AnkiConnectReply(BaseModel):
    """AnkiConnect's own ``{result, error}`` reply, passed through unchanged."""
    result: Any = None
    error: Optional[str] = None


class AudioClip(BaseModel):
    url: str = Field(..., description="Temporary URL of the synthesized audio")


ANKI_CONTRACT = ServiceContract("anki", [
    Action(
        "storeMediaFile", "store_media_file",
        params=(Param("filename", str), Param("url", str)),
        result=AnkiConnectReply,
        description="Let AnkiConnect download url into the media folder as filename.",
    ),
    Action(
        "addNote", "add_note",
        params=(Param("note", NoteRecord),),
        result=AnkiConnectReply,
        description="Add one note; the reply's result is the new note id.",
    ),
    Action(
        "updateNoteFields", "update_note_fields",
        params=(Param("note_id", int), Param("fields", Dict[str, str])),
        result=AnkiConnectReply,
        description="Overwrite the given fields of an existing note.",
    ),
    Action(
        "notesInfo", "notes_info",
        params=(Param("query", str),),
        result=List[Dict[str, Any]],
        description="Notes matching an Anki search query as flat field mappings plus noteId.",
    ),
])

AI_CONTRACT = ServiceContract("ai", [
    Action(
        "generateAudio", "generate_audio",
        params=(Param("text", str),),
        result=AudioClip,
        description="Synthesize speech for text and return its URL.",
    ),
    Action(
        "refineNote", "refine_note",
        params=(Param("data", RefineRequest),),
        result=RefinedNote,
        description="Normalize word/context and build the HTML description.",
    ),
])
