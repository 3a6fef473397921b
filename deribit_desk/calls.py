"""
Call results and background call handles.

Every desk operation returns a CallResult. Presentation layers that must
stay responsive run operations through a CallDispatcher and poll the
returned CallHandle (idle -> pending -> done) instead of keeping their own
loading flags.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from threading import Event, Lock, Thread
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from deribit_desk.deribit.base_client import ApiError, DeribitAPIError, DeribitErrorCode, ErrorKind
from deribit_desk.models import ErrorInfo

logger = logging.getLogger(__name__)


class CallStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class CallState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    DONE = "done"


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, list):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    return value


@dataclass
class CallResult:
    """
    Outcome of one desk operation.

    Attributes:
        status: success or failure
        method: JSON-RPC method (or operation name for local failures)
        data: Typed payload on success
        message: User-facing summary, always set on failure
        error_kind: transport / parse / api / validation on failure
        error: Structured exchange error for api failures
    """
    status: CallStatus
    method: str
    data: Any = None
    message: str = ""
    error_kind: Optional[ErrorKind] = None
    error: Optional[ErrorInfo] = None
    request_id: Optional[int] = None
    http_status: Optional[int] = None
    error_code: Optional[DeribitErrorCode] = None

    @property
    def ok(self) -> bool:
        return self.status == CallStatus.SUCCESS

    @classmethod
    def success(
        cls,
        method: str,
        data: Any,
        message: str = "",
        request_id: Optional[int] = None,
    ) -> "CallResult":
        return cls(
            status=CallStatus.SUCCESS,
            method=method,
            data=data,
            message=message,
            request_id=request_id,
        )

    @classmethod
    def failure(
        cls,
        method: str,
        message: str,
        error_kind: ErrorKind,
        request_id: Optional[int] = None,
    ) -> "CallResult":
        return cls(
            status=CallStatus.FAILURE,
            method=method,
            message=message,
            error_kind=error_kind,
            request_id=request_id,
        )

    @classmethod
    def from_error(
        cls,
        method: str,
        exc: DeribitAPIError,
        request_id: Optional[int] = None,
    ) -> "CallResult":
        return cls(
            status=CallStatus.FAILURE,
            method=method,
            message=exc.message,
            error_kind=exc.kind,
            error=exc.info if isinstance(exc, ApiError) else None,
            request_id=request_id,
            http_status=exc.http_status,
            error_code=exc.error_code,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "method": self.method,
            "data": _to_jsonable(self.data),
            "message": self.message,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "error": self.error.model_dump() if self.error else None,
            "request_id": self.request_id,
            "http_status": self.http_status,
            "error_code": self.error_code.value if self.error_code else None,
        }


@dataclass
class CallHandle:
    """Pollable state of one background call."""
    name: str
    call_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    state: CallState = CallState.IDLE
    result: Optional[CallResult] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    _done: Event = field(default_factory=Event, repr=False)
    _cancelled: Event = field(default_factory=Event, repr=False)
    _lock: Lock = field(default_factory=Lock, repr=False)

    @property
    def is_loading(self) -> bool:
        return self.state == CallState.PENDING

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _start(self) -> None:
        with self._lock:
            self.state = CallState.PENDING
            self.started_at = datetime.utcnow()

    def _finish(self, result: CallResult) -> bool:
        """Record ``result`` unless the handle already finished."""
        with self._lock:
            if self.state == CallState.DONE:
                return False
            self.result = result
            self.state = CallState.DONE
            self.finished_at = datetime.utcnow()
        self._done.set()
        return True

    def cancel(self) -> bool:
        """
        Finish the call as cancelled. The request already on the wire is
        not aborted; its late result is discarded.
        """
        self._cancelled.set()
        return self._finish(CallResult.failure(self.name, "Call cancelled", ErrorKind.TRANSPORT))

    def wait(self, timeout: Optional[float] = None) -> Optional[CallResult]:
        """Block until done or ``timeout`` elapses; returns the result if done."""
        self._done.wait(timeout)
        return self.result

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "call_id": self.call_id,
                "name": self.name,
                "state": self.state.value,
                "is_loading": self.state == CallState.PENDING,
                "started_at": self.started_at.isoformat() if self.started_at else None,
                "finished_at": self.finished_at.isoformat() if self.finished_at else None,
                "result": self.result.to_dict() if self.result else None,
            }


class CallDispatcher:
    """
    Runs desk operations on daemon threads with a deadline.

    Each call gets a worker thread and a watchdog; whichever finishes the
    handle first wins. Handles are kept so callers can look them up by id.
    """

    def __init__(self, timeout: float = 30.0, max_handles: int = 200):
        self.timeout = timeout
        self.max_handles = max_handles
        self._handles: Dict[str, CallHandle] = {}
        self._lock = Lock()

    def submit(
        self,
        name: str,
        fn: Callable[..., CallResult],
        *args: Any,
        **kwargs: Any,
    ) -> CallHandle:
        handle = CallHandle(name=name)
        self._remember(handle)
        handle._start()

        def worker() -> None:
            try:
                result = fn(*args, **kwargs)
            except Exception as e:
                logger.exception("Background call %s crashed", name)
                result = CallResult.failure(name, f"Unexpected error: {e}", ErrorKind.TRANSPORT)
            if not handle._finish(result):
                logger.info("Discarding late result of %s (%s)", name, handle.call_id)

        def watchdog() -> None:
            if handle._done.wait(self.timeout):
                return
            if handle._finish(
                CallResult.failure(name, f"Call timed out after {self.timeout:.1f}s", ErrorKind.TRANSPORT)
            ):
                logger.warning("Background call %s (%s) timed out", name, handle.call_id)

        Thread(target=worker, daemon=True, name=f"call-{name}").start()
        Thread(target=watchdog, daemon=True, name=f"watchdog-{name}").start()
        return handle

    def _remember(self, handle: CallHandle) -> None:
        with self._lock:
            self._handles[handle.call_id] = handle
            if len(self._handles) > self.max_handles:
                finished = [h for h in self._handles.values() if h.state == CallState.DONE]
                for old in finished[: len(self._handles) - self.max_handles]:
                    del self._handles[old.call_id]

    def get(self, call_id: str) -> Optional[CallHandle]:
        with self._lock:
            return self._handles.get(call_id)

    def pending(self) -> List[CallHandle]:
        with self._lock:
            return [h for h in self._handles.values() if h.is_loading]
