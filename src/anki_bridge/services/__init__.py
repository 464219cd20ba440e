"""Services served through the RPC tunnel and their contracts."""
from .ai import AIService
from .anki import AnkiService
from .contracts import AI_CONTRACT, ANKI_CONTRACT, AnkiConnectReply, AudioClip, NoteRecord
