"""FastAPI adapter exposing an ``RpcServer`` as ``POST /{action}``."""
from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from anki_bridge.rpc.server import RpcServer


def build_rpc_router(server: RpcServer) -> APIRouter:
    """Return a router with a single action route; mount it with a prefix.

    Example:
        >>> app.include_router(build_rpc_router(server), prefix="/api/v2/anki-rpc")
    """
    router = APIRouter(tags=[server.contract.name])

    @router.post("/{action}")
    async def rpc_endpoint(action: str, request: Request) -> JSONResponse:
        status, envelope = await server.dispatch(action, await request.body())
        return JSONResponse(envelope.model_dump(mode="json"), status_code=status)

    return router
