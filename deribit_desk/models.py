"""
Pydantic models for the Deribit trading desk.
Defines credentials, sessions, exchange error payloads, and the typed
projections of instruments, orders, order books and positions.
"""
from __future__ import annotations

from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


ORDER_BOOK_DEPTHS: Tuple[int, ...] = (1, 5, 10, 20, 50, 100, 1000, 10000)

ORDER_KINDS: Tuple[str, ...] = ("future", "future_combo", "option", "option_combo", "spot")

OPEN_ORDER_TYPES: Tuple[str, ...] = (
    "all",
    "limit",
    "stop_all",
    "stop_limit",
    "stop_market",
    "take_all",
    "take_limit",
    "take_market",
    "trailing_all",
    "trailing_stop",
)

PRICED_ORDER_TYPES: Tuple[str, ...] = ("limit", "stop_limit")


def _as_str(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        return value
    return default


def _as_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    return default


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return default


class Credentials(BaseModel):
    """Client credentials for the client_credentials grant."""
    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str = Field(..., repr=False)


class Session(BaseModel):
    """Token pair returned by public/auth."""
    model_config = ConfigDict(frozen=True)

    access_token: str = Field(..., repr=False, exclude=True)
    refresh_token: str = Field(default="", repr=False, exclude=True)
    expires_in: int = Field(default=0, description="Token lifetime in seconds")
    scope: str = ""
    issued_at_ms: int = Field(..., description="Client clock when the token was requested")

    @property
    def expires_at_ms(self) -> int:
        return self.issued_at_ms + self.expires_in * 1000

    def is_expired(self, now_ms: int) -> bool:
        """True once the token lifetime has elapsed. A zero lifetime never expires."""
        if self.expires_in <= 0:
            return False
        return now_ms >= self.expires_at_ms


class ErrorInfo(BaseModel):
    """
    Structured JSON-RPC error object.

    Deribit attaches ``data.param`` / ``data.reason`` to parameter errors;
    simpler errors carry only ``code`` and ``message``.
    """
    code: int = -1
    message: str = "Unknown error"
    param: Optional[str] = None
    reason: Optional[str] = None
    data: Any = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ErrorInfo":
        if isinstance(payload, str):
            return cls(message=payload or "Unknown error")
        if not isinstance(payload, dict):
            return cls()

        data = payload.get("data")
        param = reason = None
        if isinstance(data, dict):
            param = data.get("param") if isinstance(data.get("param"), str) else None
            reason = data.get("reason") if isinstance(data.get("reason"), str) else None

        return cls(
            code=_as_int(payload.get("code"), -1),
            message=_as_str(payload.get("message")) or "Unknown error",
            param=param,
            reason=reason,
            data=data,
        )

    def describe(self) -> str:
        """Render as ``message (param: reason)``, dropping absent parts."""
        if self.param and self.reason:
            return f"{self.message} ({self.param}: {self.reason})"
        if self.reason:
            return f"{self.message} ({self.reason})"
        if self.param:
            return f"{self.message} ({self.param})"
        return self.message


class Instrument(BaseModel):
    name: str
    kind: str = ""
    base_currency: str = ""
    tick_size: float = 0.0

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["Instrument"]:
        if not isinstance(payload, dict):
            return None
        name = payload.get("instrument_name")
        if not isinstance(name, str) or not name:
            return None
        return cls(
            name=name,
            kind=_as_str(payload.get("kind")),
            base_currency=_as_str(payload.get("base_currency")),
            tick_size=_as_float(payload.get("tick_size")),
        )


class Order(BaseModel):
    """An order as reported by the exchange."""
    order_id: str = ""
    instrument_name: str = ""
    direction: str = ""
    price: float = 0.0
    contracts: float = 0.0
    amount: float = 0.0
    state: str = ""
    order_type: str = ""
    label: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> "Order":
        if not isinstance(payload, dict):
            return cls()
        return cls(
            order_id=_as_str(payload.get("order_id")),
            instrument_name=_as_str(payload.get("instrument_name")),
            direction=_as_str(payload.get("direction")),
            price=_as_float(payload.get("price")),
            contracts=_as_float(payload.get("contracts")),
            amount=_as_float(payload.get("amount")),
            state=_as_str(payload.get("order_state")),
            order_type=_as_str(payload.get("order_type")),
            label=_as_str(payload.get("label")),
        )


class PlacedOrder(BaseModel):
    order_id: str
    order_state: str
    order: Order


class OrderRequest(BaseModel):
    """
    Outbound order for private/buy.

    Optional sizes are only sent when positive; price is only sent for
    types in PRICED_ORDER_TYPES.
    """
    instrument_name: str = ""
    type: str = "limit"
    label: str = ""
    amount: Optional[float] = None
    contracts: Optional[float] = None
    price: Optional[float] = None

    @property
    def requires_price(self) -> bool:
        return self.type in PRICED_ORDER_TYPES

    def validation_errors(self) -> List[str]:
        """Return the list of problems; empty when the order may be sent."""
        errors: List[str] = []
        if not self.instrument_name:
            errors.append("instrument_name is required")
        if not self.type:
            errors.append("type is required")
        if not self.label:
            errors.append("label is required")
        if not (self.amount or 0) > 0 and not (self.contracts or 0) > 0:
            errors.append("amount or contracts must be positive")
        if self.requires_price and not (self.price or 0) > 0:
            errors.append(f"price must be positive for {self.type} orders")
        return errors

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "instrument_name": self.instrument_name,
            "type": self.type,
            "label": self.label,
        }
        if self.amount is not None and self.amount > 0:
            params["amount"] = self.amount
        if self.contracts is not None and self.contracts > 0:
            params["contracts"] = self.contracts
        if self.requires_price and self.price is not None:
            params["price"] = self.price
        return params


class Greeks(BaseModel):
    delta: float = 0.0
    gamma: float = 0.0
    theta: float = 0.0
    vega: float = 0.0
    rho: float = 0.0


def _book_levels(raw: Any) -> List[Tuple[float, float]]:
    """Parse ``[[price, amount], ...]``, skipping malformed levels."""
    levels: List[Tuple[float, float]] = []
    if not isinstance(raw, list):
        return levels
    for level in raw:
        if not isinstance(level, (list, tuple)) or len(level) != 2:
            continue
        price, amount = level
        if isinstance(price, bool) or isinstance(amount, bool):
            continue
        if not isinstance(price, (int, float)) or not isinstance(amount, (int, float)):
            continue
        levels.append((float(price), float(amount)))
    return levels


class OrderBook(BaseModel):
    """Projection of public/get_order_book."""
    instrument_name: str = ""
    index_price: float = 0.0
    underlying_price: float = 0.0
    mark_price: float = 0.0
    settlement_price: float = 0.0
    greeks: Optional[Greeks] = None
    bids: List[Tuple[float, float]] = Field(default_factory=list)
    asks: List[Tuple[float, float]] = Field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> "OrderBook":
        if not isinstance(payload, dict):
            return cls()

        greeks = None
        raw_greeks = payload.get("greeks")
        if isinstance(raw_greeks, dict):
            greeks = Greeks(**{k: _as_float(raw_greeks.get(k)) for k in Greeks.model_fields})

        return cls(
            instrument_name=_as_str(payload.get("instrument_name")),
            index_price=_as_float(payload.get("index_price")),
            underlying_price=_as_float(payload.get("underlying_price")),
            mark_price=_as_float(payload.get("mark_price")),
            settlement_price=_as_float(payload.get("settlement_price")),
            greeks=greeks,
            bids=_book_levels(payload.get("bids")),
            asks=_book_levels(payload.get("asks")),
        )


class Position(BaseModel):
    """Projection of private/get_position; the raw result is kept for display."""
    instrument_name: str = ""
    direction: str = ""
    kind: str = ""
    size: float = 0.0
    average_price: float = 0.0
    mark_price: float = 0.0
    floating_profit_loss: float = 0.0
    raw: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "Position":
        if not isinstance(payload, dict):
            return cls()
        return cls(
            instrument_name=_as_str(payload.get("instrument_name")),
            direction=_as_str(payload.get("direction")),
            kind=_as_str(payload.get("kind")),
            size=_as_float(payload.get("size")),
            average_price=_as_float(payload.get("average_price")),
            mark_price=_as_float(payload.get("mark_price")),
            floating_profit_loss=_as_float(payload.get("floating_profit_loss")),
            raw=payload,
        )
