"""
The ``{result, error}`` envelope used for every tunnel response.
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class Envelope(BaseModel):
    """Wire-level response of a tunnel call.

    A non-null ``error`` means ``result`` must be ignored.
    """

    result: Any = Field(default=None, description="Value returned by the action")
    error: Optional[str] = Field(default=None, description="Failure message, null on success")

    @classmethod
    def success(cls, result: Any) -> "Envelope":
        return cls(result=result, error=None)

    @classmethod
    def failure(cls, error: str) -> "Envelope":
        return cls(result=None, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None
