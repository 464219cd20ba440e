from __future__ import annotations

from typing import Optional


class RpcError(RuntimeError):
    """A tunnel call failed on the client side.

    Covers transport failures, non-2xx statuses, malformed envelopes and
    envelopes carrying an ``error``. ``action`` names the call that failed.
    """

    def __init__(self, action: str, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"[RPC Error: {action}] {message}")
        self.action = action
        self.message = message
        self.status_code = status_code


class RpcContractError(TypeError):
    """A service object does not implement the contract it is served under."""
