"""
JSON-RPC 2.0 request envelopes.
"""
from __future__ import annotations

import threading
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class RequestIdGenerator:
    """Thread-safe, monotonically increasing JSON-RPC ids."""

    def __init__(self, start: int = 1):
        self._next = start
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value


class JsonRpcRequest(BaseModel):
    jsonrpc: Literal["2.0"] = "2.0"
    id: int
    method: str
    params: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_private(self) -> bool:
        return self.method.startswith("private/")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump()


def build_request(
    method: str,
    params: Optional[Dict[str, Any]],
    ids: RequestIdGenerator,
) -> JsonRpcRequest:
    """Wrap ``method``/``params`` in an envelope with the next id from ``ids``."""
    return JsonRpcRequest(id=ids.next_id(), method=method, params=dict(params or {}))


def method_url(base_url: str, method: str) -> str:
    """Deribit accepts the method in the path as well as in the body."""
    return f"{base_url.rstrip('/')}/api/v2/{method}"
