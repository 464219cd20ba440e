"""
Client side of the RPC tunnel.

``RpcClient`` exposes one coroutine per contract action. Calling it POSTs the
JSON argument array to ``{base_url}/{action}`` and unwraps the envelope.

Example:

from anki_bridge.rpc import RpcClient
from anki_bridge.services.contracts import ANKI_CONTRACT

anki = RpcClient(ANKI_CONTRACT, "http://127.0.0.1:8000/api/v2/anki-rpc")
notes = await anki.notesInfo("deck:Vocabulary")
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError

from anki_bridge.rpc.contract import Action, ServiceContract
from anki_bridge.rpc.envelope import Envelope
from anki_bridge.rpc.errors import RpcError

logger = logging.getLogger(__name__)


class RpcClient:
    """Proxy for a remote service described by ``contract``.

    Stubs are reachable by wire name (``client.addNote``) and by method name
    (``client.add_note``). Without an ``http_client`` every call opens its own
    connection; nothing is pooled, cached or retried.

    ``timeout`` applies only to those per-call connections and defaults to
    None: a slow action is waited for until the caller gives up.
    """

    def __init__(
        self,
        contract: ServiceContract,
        base_url: str,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.contract = contract
        self.base_url = base_url.rstrip("/")
        self._http = http_client
        self.timeout = timeout
        stubs: Dict[str, Callable[..., Awaitable[Any]]] = {}
        for action in contract:
            stub = self._make_stub(action)
            stubs[action.name] = stub
            stubs.setdefault(action.method, stub)
        self._stubs = stubs

    def _make_stub(self, action: Action) -> Callable[..., Awaitable[Any]]:
        async def stub(*args: Any, **kwargs: Any) -> Any:
            return await self._invoke(action, args, kwargs)

        stub.__name__ = action.method
        stub.__qualname__ = f"{type(self).__name__}.{action.method}"
        stub.__doc__ = action.description or None
        return stub

    def __getattr__(self, name: str) -> Callable[..., Awaitable[Any]]:
        stubs = self.__dict__.get("_stubs") or {}
        try:
            return stubs[name]
        except KeyError:
            raise AttributeError(
                f"'{self.contract.name}' contract has no action or method named '{name}'"
            ) from None

    def __dir__(self) -> List[str]:
        return sorted(set(super().__dir__()) | set(self._stubs))

    async def call(self, action_name: str, *args: Any, **kwargs: Any) -> Any:
        """Invoke an action by its wire name."""
        action = self.contract.get(action_name)
        if action is None:
            raise RpcError(action_name, f"Action is not declared in contract '{self.contract.name}'")
        return await self._invoke(action, args, kwargs)

    async def _invoke(self, action: Action, args: tuple, kwargs: dict) -> Any:
        params = action.encode_args(*args, **kwargs)
        raw = await self._post(action.name, params)
        try:
            return action.decode_result(raw)
        except ValidationError as e:
            raise RpcError(action.name, f"Unexpected result shape: {e}") from e

    async def _post(self, action: str, params: List[Any]) -> Any:
        url = f"{self.base_url}/{action}"
        try:
            if self._http is not None:
                response = await self._http.post(url, json=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=params)
        except httpx.HTTPError as e:
            raise RpcError(action, f"Network error: {type(e).__name__}: {e}") from e

        if not response.is_success:
            error_text = f"Network/Server Error: {response.status_code} {response.reason_phrase}"
            try:
                error_body = Envelope.model_validate(response.json())
                if error_body.error:
                    error_text = error_body.error
            except ValueError:
                pass
            raise RpcError(action, error_text, status_code=response.status_code)

        try:
            envelope = Envelope.model_validate(response.json())
        except ValueError as e:
            raise RpcError(action, f"Malformed response envelope: {e}", status_code=response.status_code) from e

        if envelope.error is not None:
            raise RpcError(action, envelope.error, status_code=response.status_code)
        logger.debug("RPC call completed", extra={"action": action, "url": url})
        return envelope.result


def create_rpc_client(
    contract: ServiceContract,
    base_url: str,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None,
) -> RpcClient:
    """Build a client for ``contract`` served under ``base_url``."""
    return RpcClient(contract, base_url, http_client=http_client, timeout=timeout)
