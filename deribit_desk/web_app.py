"""
FastAPI desk API.
Exposes one endpoint per desk operation. Any operation can run in the
background (``?background=true``); its state is then polled at
/api/calls/{call_id}.
"""
from __future__ import annotations

import threading
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from deribit_desk.calls import CallResult
from deribit_desk.deribit.base_client import ErrorKind
from deribit_desk.deribit_client import DeskClient
from deribit_desk.models import ORDER_BOOK_DEPTHS, ORDER_KINDS, OPEN_ORDER_TYPES, OrderRequest


app = FastAPI(
    title="Deribit Desk",
    description="Deribit testnet trading desk: instruments, order books, orders and positions.",
    version="0.1.0",
)

_client: Optional[DeskClient] = None
_client_lock = threading.Lock()


def get_client() -> DeskClient:
    global _client
    with _client_lock:
        if _client is None:
            _client = DeskClient()
        return _client


def set_client(client: Optional[DeskClient]) -> None:
    """Swap the shared client (used by tests and embedding apps)."""
    global _client
    with _client_lock:
        _client = client


class ModifyOrderBody(BaseModel):
    amount: Optional[float] = Field(default=None, description="New order size in amount units")
    contracts: Optional[float] = Field(default=None, description="New order size in contracts")


def _respond(result: CallResult) -> JSONResponse:
    if result.ok:
        status_code = 200
    elif result.error_kind == ErrorKind.VALIDATION:
        status_code = 400
    else:
        status_code = 502
    return JSONResponse(status_code=status_code, content=result.to_dict())


def _dispatch(background: bool, operation: str, *args: Any, **kwargs: Any) -> JSONResponse:
    client = get_client()
    if background:
        handle = client.background(operation, *args, **kwargs)
        return JSONResponse(status_code=202, content=handle.to_dict())
    return _respond(getattr(client, operation)(*args, **kwargs))


@app.get("/health")
def health_check() -> JSONResponse:
    """Liveness endpoint; does not touch the exchange."""
    client = get_client()
    return JSONResponse(content={
        "status": "healthy",
        "service": "deribit-desk",
        "authenticated": client.is_authenticated,
    })


@app.get("/api/options")
def get_options() -> JSONResponse:
    """Choices for order-book depth, open-order kind and type pickers."""
    return JSONResponse(content={
        "depths": list(ORDER_BOOK_DEPTHS),
        "kinds": list(ORDER_KINDS),
        "types": list(OPEN_ORDER_TYPES),
    })


@app.post("/api/auth")
def authenticate(background: bool = False) -> JSONResponse:
    """Authenticate with the configured credentials."""
    client = get_client()
    if background:
        handle = client.background("authenticate")
        return JSONResponse(status_code=202, content=handle.to_dict())
    result = client.authenticate()
    if result.ok:
        session = result.data
        return JSONResponse(content={
            "status": result.status.value,
            "scope": session.scope,
            "expires_in": session.expires_in,
            "expires_at_ms": session.expires_at_ms,
        })
    return _respond(result)


@app.get("/api/test")
def test_connectivity(background: bool = False) -> JSONResponse:
    return _dispatch(background, "test_connectivity")


@app.get("/api/instruments")
def list_instruments(currency: str = "any", background: bool = False) -> JSONResponse:
    return _dispatch(background, "list_instruments", currency)


@app.get("/api/order-book")
def get_order_book(
    instrument_name: str,
    depth: Optional[int] = None,
    background: bool = False,
) -> JSONResponse:
    return _dispatch(background, "get_order_book", instrument_name, depth)


@app.get("/api/position")
def get_position(instrument_name: str, background: bool = False) -> JSONResponse:
    return _dispatch(background, "get_position", instrument_name)


@app.get("/api/open-orders")
def get_open_orders(
    kind: str = "future",
    type: str = "all",
    background: bool = False,
) -> JSONResponse:
    if kind not in ORDER_KINDS:
        raise HTTPException(status_code=400, detail=f"Invalid kind. Must be one of: {list(ORDER_KINDS)}")
    if type not in OPEN_ORDER_TYPES:
        raise HTTPException(status_code=400, detail=f"Invalid type. Must be one of: {list(OPEN_ORDER_TYPES)}")
    return _dispatch(background, "get_open_orders", kind, type)


@app.post("/api/orders")
def place_order(order: OrderRequest, background: bool = False) -> JSONResponse:
    return _dispatch(background, "place_order", order)


@app.post("/api/orders/{order_id}/edit")
def modify_order(order_id: str, body: ModifyOrderBody, background: bool = False) -> JSONResponse:
    return _dispatch(background, "modify_order", order_id, amount=body.amount, contracts=body.contracts)


@app.post("/api/orders/{order_id}/cancel")
def cancel_order(order_id: str, background: bool = False) -> JSONResponse:
    return _dispatch(background, "cancel_order", order_id)


@app.get("/api/calls/{call_id}")
def get_call(call_id: str) -> JSONResponse:
    """Poll a background call."""
    handle = get_client().dispatcher.get(call_id)
    if handle is None:
        raise HTTPException(status_code=404, detail=f"Unknown call id: {call_id}")
    return JSONResponse(content=handle.to_dict())


@app.post("/api/calls/{call_id}/cancel")
def cancel_call(call_id: str) -> JSONResponse:
    handle = get_client().dispatcher.get(call_id)
    if handle is None:
        raise HTTPException(status_code=404, detail=f"Unknown call id: {call_id}")
    cancelled = handle.cancel()
    return JSONResponse(content={"cancelled": cancelled, **handle.to_dict()})
