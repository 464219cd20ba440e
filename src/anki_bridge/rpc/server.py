"""
Server side of the RPC tunnel.

An ``RpcServer`` resolves every action of a contract to a bound method of a
service object once, at construction, and then dispatches raw requests
against that fixed table. It never raises: every outcome is an ``Envelope``
plus an HTTP status.
"""
from __future__ import annotations

import inspect
import json
import logging
from types import MappingProxyType
from typing import Any, Callable, List, Mapping, Optional, Tuple, Union

from anki_bridge.rpc.contract import Action, ServiceContract
from anki_bridge.rpc.envelope import Envelope
from anki_bridge.rpc.errors import RpcContractError

logger = logging.getLogger(__name__)

STATUS_OK = 200
STATUS_BAD_REQUEST = 400
STATUS_NOT_FOUND = 404
STATUS_SERVER_ERROR = 500

INVALID_BODY_MESSAGE = "Invalid JSON body. Parameters must be sent as a JSON array."
INTERNAL_ERROR_MESSAGE = "Internal server error during method execution."


def _not_found_message(action: Optional[str]) -> str:
    return f"Action '{action}' not found or is not a callable method."


class RpcServer:
    """Dispatch tunnel requests to the methods of ``service``.

    Args:
        contract: actions this server answers
        service: object implementing ``action.method`` for every action
        strict_arguments: reject a valid JSON body that is not an array with
            400 instead of calling the action with no arguments
    """

    def __init__(self, contract: ServiceContract, service: Any, *, strict_arguments: bool = False) -> None:
        handlers = {}
        for action in contract:
            method = getattr(service, action.method, None)
            if not callable(method):
                raise RpcContractError(
                    f"{type(service).__name__} does not implement '{action.method}' "
                    f"required by action '{action.name}' of contract '{contract.name}'"
                )
            handlers[action.name] = (action, method)
        self.contract = contract
        self.service = service
        self.strict_arguments = strict_arguments
        self._handlers: Mapping[str, Tuple[Action, Callable[..., Any]]] = MappingProxyType(handlers)

    @property
    def actions(self) -> List[str]:
        return list(self._handlers)

    def _parse_body(self, action: str, body: Union[bytes, str, None]) -> Optional[List[Any]]:
        """Return the argument array, or None when the body must be rejected."""
        try:
            args = json.loads(body or b"")
        except (ValueError, UnicodeDecodeError):
            return None
        if not isinstance(args, list):
            if self.strict_arguments:
                return None
            logger.warning(
                "Request body is not a JSON array; calling with no arguments",
                extra={"action": action, "body_type": type(args).__name__},
            )
            args = []
        return args

    async def dispatch(self, action: Optional[str], body: Union[bytes, str, None]) -> Tuple[int, Envelope]:
        """Run one request to completion and return ``(status, envelope)``."""
        entry = self._handlers.get(action) if action else None
        if entry is None:
            logger.info("Unknown action requested", extra={"contract": self.contract.name, "action": action})
            return STATUS_NOT_FOUND, Envelope.failure(_not_found_message(action))
        target, method = entry

        raw_args = self._parse_body(target.name, body)
        if raw_args is None:
            return STATUS_BAD_REQUEST, Envelope.failure(INVALID_BODY_MESSAGE)

        try:
            args = target.decode_args(raw_args)
        except ValueError as e:
            logger.info("Rejected arguments", extra={"action": target.name, "reason": str(e)})
            return STATUS_BAD_REQUEST, Envelope.failure(f"Invalid arguments for action '{target.name}': {e}")

        try:
            value = method(*args)
            if inspect.isawaitable(value):
                value = await value
            result = target.encode_result(value)
        except Exception as e:
            logger.error(f"Error executing action {target.name}: {e}", extra={"contract": self.contract.name}, exc_info=True)
            return STATUS_SERVER_ERROR, Envelope.failure(str(e) or INTERNAL_ERROR_MESSAGE)

        logger.debug("Action completed", extra={"contract": self.contract.name, "action": target.name})
        return STATUS_OK, Envelope.success(result)


def create_rpc_server(contract: ServiceContract, service: Any, *, strict_arguments: bool = False) -> RpcServer:
    """Build the dispatcher for ``service`` under ``contract``."""
    return RpcServer(contract, service, strict_arguments=strict_arguments)
