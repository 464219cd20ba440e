"""anki_bridge package.

Async backend between a flashcard web client, AnkiConnect and an
OpenAI-compatible language model:
- rpc: generic typed RPC tunnel (contract, client, server, FastAPI router)
- services: AnkiConnect and AI services served through the tunnel
- app: FastAPI application wiring
"""
__version__ = "0.1.0"
