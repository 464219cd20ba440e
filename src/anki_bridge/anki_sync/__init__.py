"""AnkiConnect access for the bridge.

Example usage:

from anki_bridge.anki_sync import AnkiConnectClient

client = AnkiConnectClient("http://127.0.0.1:8765")
reply = await client.update_note_fields(1700000000000, {"Back": "updated"})
"""
from .anki_connect import ANKI_CONNECT_VERSION, AnkiConnectClient, flatten_note_info
