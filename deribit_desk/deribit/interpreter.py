"""
Classification of raw JSON-RPC response bodies.

interpret() never raises: any string maps to exactly one of Success,
Failure or Malformed.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional, Union

from deribit_desk.models import ErrorInfo


@dataclass(frozen=True)
class Success:
    result: Any
    id: Optional[int] = None


@dataclass(frozen=True)
class Failure:
    error: ErrorInfo
    id: Optional[int] = None

    @property
    def message(self) -> str:
        return self.error.describe()


@dataclass(frozen=True)
class Malformed:
    diagnostic: str
    raw: str = ""


Interpretation = Union[Success, Failure, Malformed]


def _response_id(data: dict) -> Optional[int]:
    value = data.get("id")
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _reject_constant(token: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {token}")


def interpret(raw_body: str) -> Interpretation:
    """Classify a response body as Success, Failure or Malformed."""
    try:
        data = json.loads(raw_body, parse_constant=_reject_constant)
    except (TypeError, ValueError, RecursionError) as e:
        return Malformed(diagnostic=f"Error parsing JSON: {e}", raw=str(raw_body)[:500])

    if not isinstance(data, dict):
        return Malformed(
            diagnostic=f"Expected a JSON object, got {type(data).__name__}",
            raw=raw_body[:500],
        )

    if "error" in data:
        return Failure(error=ErrorInfo.from_payload(data["error"]), id=_response_id(data))

    if "result" in data:
        return Success(result=data["result"], id=_response_id(data))

    return Malformed(
        diagnostic="Response contains neither 'result' nor 'error'",
        raw=raw_body[:500],
    )
