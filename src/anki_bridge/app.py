"""
FastAPI application: the two RPC tunnels plus the plain upload and legacy
completion routes used by older pages of the client.
"""
from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from langchain_core.runnables import Runnable
from pydantic import BaseModel, Field, ValidationError

from anki_bridge.anki_sync.anki_connect import AnkiConnectClient
from anki_bridge.common.html import escape_html
from anki_bridge.common.llm import build_llm
from anki_bridge.common.observability import get_default_callbacks
from anki_bridge.config_models import AppConfig, load_config
from anki_bridge.errors import AnkiConnectError, ConfigurationError, LLMResponseError
from anki_bridge.pipelines.refine.chains import build_refine_chain, parse_note_description, render_description
from anki_bridge.rpc.routing import build_rpc_router
from anki_bridge.rpc.server import RpcServer
from anki_bridge.services.ai import AIService
from anki_bridge.services.anki import AnkiService
from anki_bridge.services.contracts import AI_CONTRACT, ANKI_CONTRACT

logger = logging.getLogger(__name__)

ANKI_RPC_PREFIX = "/api/v2/anki-rpc"
AI_RPC_PREFIX = "/api/v2/ai-rpc"


class UploadRequest(BaseModel):
    word: str = Field(..., description="Word or phrase")
    ctx: str = Field(..., description="Context sentence")
    desc: str = Field(default="", description="HTML description")


class CompletionRequest(BaseModel):
    word: str = Field(default="")
    ctx: str = Field(default="")
    desc: str = Field(default="")


def create_app(
    config: Optional[AppConfig] = None,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
    llm: Optional[Runnable] = None,
    complete_llm: Optional[Runnable] = None,
) -> FastAPI:
    """Wire services, tunnels and routes.

    Args:
        config: configuration, loaded from the environment if None
        http_client: shared client for AnkiConnect and TTS (mock transports in tests)
        llm: chat model for ``refineNote`` instead of one built from config
        complete_llm: chat model for ``/api/ai-complete`` instead of one built from config
    """
    config = config if config is not None else load_config()
    strict = config.server.strict_arguments

    anki_server = RpcServer(ANKI_CONTRACT, AnkiService(config.anki, http_client=http_client), strict_arguments=strict)
    ai_server = RpcServer(AI_CONTRACT, AIService(config, http_client=http_client, llm=llm), strict_arguments=strict)

    app = FastAPI(title="anki-bridge", description="AnkiConnect and language model bridge")
    app.state.config = config
    app.include_router(build_rpc_router(anki_server), prefix=ANKI_RPC_PREFIX)
    app.include_router(build_rpc_router(ai_server), prefix=AI_RPC_PREFIX)

    @app.get("/healthz")
    async def healthz() -> dict:
        return {"status": "ok", "actions": {"anki": anki_server.actions, "ai": ai_server.actions}}

    @app.post("/api/upload", response_class=PlainTextResponse)
    async def upload(request: Request) -> PlainTextResponse:
        try:
            payload = UploadRequest.model_validate_json(await request.body())
        except ValidationError as e:
            logger.warning("Rejected upload body", extra={"errors": e.error_count()})
            return PlainTextResponse("error", status_code=400)
        upload_cfg = config.upload
        note = {
            "deckName": upload_cfg.deck_name,
            "modelName": upload_cfg.model_name,
            "fields": {
                upload_cfg.word_field: payload.word,
                upload_cfg.context_field: payload.ctx,
                upload_cfg.description_field: payload.desc,
            },
        }
        try:
            client = AnkiConnectClient(
                config.anki.require_url(),
                version=config.anki.version,
                timeout=config.anki.timeout_seconds,
                http_client=http_client,
            )
            await client.call("addNotes", {"notes": [note]})
        except (ConfigurationError, AnkiConnectError, httpx.HTTPError, ValueError) as e:
            logger.error(f"Upload failed: {e}", extra={"word": payload.word})
            return PlainTextResponse("error", status_code=500)
        logger.info("Note uploaded", extra={"word": payload.word, "deck": upload_cfg.deck_name})
        return PlainTextResponse("ok")

    @app.post("/api/ai-complete")
    async def ai_complete(payload: CompletionRequest) -> JSONResponse:
        word, ctx = payload.word, payload.ctx

        def reply(desc: str, status_code: int = 200, **overrides: str) -> JSONResponse:
            body = {"word": word, "ctx": ctx, "desc": desc}
            body.update(overrides)
            return JSONResponse(body, status_code=status_code)

        try:
            model = complete_llm if complete_llm is not None else build_llm(config.llm, config.llm.complete_temperature)
        except ConfigurationError as e:
            return reply(str(e), status_code=500)

        try:
            content = await build_refine_chain(model).ainvoke(
                {"word": word, "context": ctx},
                config={"callbacks": get_default_callbacks()},
            )
        except Exception as e:
            logger.error(f"Completion request failed: {e}", extra={"word": word}, exc_info=True)
            status_code = getattr(e, "status_code", None)
            if not isinstance(status_code, int) or status_code < 400:
                status_code = 500
            return reply(f"Server or network error: {e}", status_code=status_code)

        if not content:
            return reply("The language model returned empty content.", status_code=500)

        try:
            description = parse_note_description(content)
        except LLMResponseError as e:
            logger.error(f"Failed to parse model response: {e}", extra={"word": word})
            return reply(f"<p><strong>❌ JSON parse failed</strong></p><pre>{escape_html(content)}</pre>")

        return reply(
            render_description(description),
            word=description.word if description.word is not None else word,
            ctx=description.context if description.context is not None else ctx,
        )

    return app
