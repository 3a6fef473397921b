"""
Deribit desk client.
One method per exchange operation; every method returns a CallResult and
never raises for transport, parse, API or validation failures.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from deribit_desk.auth import Authenticator, now_ms
from deribit_desk.calls import CallDispatcher, CallHandle, CallResult
from deribit_desk.config import settings
from deribit_desk.deribit.base_client import (
    ApiError,
    ClientValidationError,
    DeribitAPIError,
    DeribitErrorCode,
    HttpTransport,
    ParseError,
    TransportError,
    classify_http_status,
)
from deribit_desk.deribit.envelope import (
    JsonRpcRequest,
    RequestIdGenerator,
    build_request,
    method_url,
)
from deribit_desk.deribit.interpreter import Failure, Malformed, interpret
from deribit_desk.logging_utils import log_api_call
from deribit_desk.models import (
    Credentials,
    ErrorInfo,
    Instrument,
    Order,
    OrderBook,
    OrderRequest,
    PlacedOrder,
    Position,
    Session,
)

logger = logging.getLogger(__name__)


class DeskClient:
    """
    Deribit testnet client for the trading desk.

    Public methods work without a session; private ones need authenticate()
    (or set_session()) first and are rejected locally otherwise.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        credentials: Optional[Credentials] = None,
        transport: Optional[HttpTransport] = None,
        ids: Optional[RequestIdGenerator] = None,
        clock: Callable[[], int] = now_ms,
        dispatcher: Optional[CallDispatcher] = None,
        api_log_enabled: Optional[bool] = None,
    ):
        self.base_url = base_url or settings.deribit_base_url
        self.credentials = credentials or settings.credentials()
        self.transport = transport or HttpTransport(timeout=settings.request_timeout_seconds)
        self.ids = ids or RequestIdGenerator()
        self.clock = clock
        self.dispatcher = dispatcher or CallDispatcher(timeout=settings.call_timeout_seconds)
        self.api_log_enabled = settings.api_log_enabled if api_log_enabled is None else api_log_enabled

        self.authenticator = Authenticator(self.transport, self.base_url, ids=self.ids, clock=clock)
        self._session: Optional[Session] = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def set_session(self, session: Optional[Session]) -> None:
        self._session = session

    def authenticate(self, credentials: Optional[Credentials] = None) -> CallResult:
        """Authenticate and replace the current session."""
        method = "public/auth"
        try:
            session = self.authenticator.authenticate(credentials or self.credentials)
        except DeribitAPIError as e:
            return self._record(CallResult.from_error(method, e))
        self._session = session
        return self._record(CallResult.success(method, session, message="Authenticated"))

    def _call(
        self,
        method: str,
        params: Optional[Dict[str, Any]],
        project: Callable[[Any], Any],
        message: Callable[[Any], str] = lambda data: "",
    ) -> CallResult:
        request_id = None
        try:
            if method.startswith("private/") and self._session is None:
                raise ClientValidationError("Not authenticated: call authenticate() first")
            request = build_request(method, params, self.ids)
            request_id = request.id
            data = project(self._exchange(request))
        except DeribitAPIError as e:
            return self._record(CallResult.from_error(method, e, request_id))
        return self._record(CallResult.success(method, data, message=message(data), request_id=request_id))

    def _exchange(self, request: JsonRpcRequest) -> Any:
        """Send ``request`` and return its ``result``, raising on any failure."""
        token = None
        if request.is_private and self._session is not None:
            if self._session.is_expired(self.clock()):
                logger.warning("Access token expired; sending %s anyway", request.method)
            token = self._session.access_token

        response = self.transport.send(
            method_url(self.base_url, request.method),
            request.to_payload(),
            token,
        )

        if response.is_empty:
            if response.is_http_error:
                raise TransportError(
                    -1,
                    f"HTTP error {response.status_code} with empty body",
                    error_code=classify_http_status(response.status_code),
                    http_status=response.status_code,
                )
            raise TransportError(
                -1,
                response.error or "Empty response from server",
                error_code=response.error_code or DeribitErrorCode.NETWORK,
                http_status=response.status_code,
            )

        outcome = interpret(response.body)
        if isinstance(outcome, Failure):
            raise ApiError(outcome.error, http_status=response.status_code)
        if isinstance(outcome, Malformed):
            if response.is_http_error:
                raise TransportError(
                    -1,
                    f"HTTP error {response.status_code}: {outcome.diagnostic}",
                    error_code=classify_http_status(response.status_code),
                    http_status=response.status_code,
                )
            raise ParseError(-1, outcome.diagnostic, http_status=response.status_code)

        if outcome.id is not None and outcome.id != request.id:
            logger.warning(
                "Response id %s does not match request id %s for %s",
                outcome.id,
                request.id,
                request.method,
            )
        return outcome.result

    def _reject(self, method: str, problems: List[str]) -> CallResult:
        error = ClientValidationError("; ".join(problems))
        return self._record(CallResult.from_error(method, error))

    def _record(self, result: CallResult) -> CallResult:
        if result.ok:
            logger.info("%s succeeded (id=%s)", result.method, result.request_id)
        else:
            logger.warning(
                "%s failed [%s]: %s",
                result.method,
                result.error_kind.value if result.error_kind else "unknown",
                result.message,
            )
        if self.api_log_enabled:
            log_api_call(
                result.method,
                result.request_id,
                result.status.value,
                result.error_kind.value if result.error_kind else None,
                result.message,
            )
        return result

    def test_connectivity(self) -> CallResult:
        """public/test; data is the exchange API version string."""
        def project(result: Any) -> str:
            version = result.get("version") if isinstance(result, dict) else None
            return version if isinstance(version, str) else ""

        return self._call(
            "public/test",
            {},
            project,
            message=lambda version: f"Connected (API version {version or 'unknown'})",
        )

    def list_instruments(self, currency: str = "any") -> CallResult:
        """public/get_instruments projected to Instrument names."""
        def project(result: Any) -> List[Instrument]:
            if not isinstance(result, list):
                return []
            instruments = (Instrument.from_payload(item) for item in result)
            return [i for i in instruments if i is not None]

        return self._call(
            "public/get_instruments",
            {"currency": currency},
            project,
            message=lambda items: f"{len(items)} instruments",
        )

    def instrument_names(self, currency: str = "any") -> List[str]:
        """Names for pickers; empty when the fetch fails."""
        result = self.list_instruments(currency)
        if not result.ok:
            return []
        return [instrument.name for instrument in result.data]

    def get_order_book(self, instrument_name: str, depth: Optional[int] = None) -> CallResult:
        method = "public/get_order_book"
        if depth is None:
            depth = settings.default_order_book_depth
        problems = []
        if not instrument_name:
            problems.append("instrument_name is required")
        if depth <= 0:
            problems.append("depth must be positive")
        if problems:
            return self._reject(method, problems)

        return self._call(
            method,
            {"instrument_name": instrument_name, "depth": depth},
            OrderBook.from_payload,
        )

    def get_position(self, instrument_name: str) -> CallResult:
        method = "private/get_position"
        if not instrument_name:
            return self._reject(method, ["instrument_name is required"])
        return self._call(method, {"instrument_name": instrument_name}, Position.from_payload)

    def get_open_orders(self, kind: str = "future", order_type: str = "all") -> CallResult:
        """private/get_open_orders; data is a list of Order."""
        def project(result: Any) -> List[Order]:
            if not isinstance(result, list):
                raise ParseError(-1, "Invalid response format: missing or invalid 'result' field")
            return [Order.from_payload(item) for item in result]

        return self._call(
            "private/get_open_orders",
            {"kind": kind, "type": order_type},
            project,
            message=lambda orders: f"{len(orders)} open orders" if orders else "No open orders found.",
        )

    def place_order(self, order: OrderRequest) -> CallResult:
        """
        private/buy.

        The order is validated first; invalid orders are rejected without
        touching the network.
        """
        method = "private/buy"
        problems = order.validation_errors()
        if problems:
            return self._reject(method, problems)

        def project(result: Any) -> PlacedOrder:
            raw_order = result.get("order") if isinstance(result, dict) else None
            if not isinstance(raw_order, dict):
                raise ParseError(-1, "Unexpected response format.")
            placed = Order.from_payload(raw_order)
            return PlacedOrder(order_id=placed.order_id, order_state=placed.state, order=placed)

        return self._call(
            method,
            order.to_params(),
            project,
            message=lambda placed: (
                f"Order placed successfully. Order ID: {placed.order_id}, status: {placed.order_state}"
            ),
        )

    def modify_order(
        self,
        order_id: str,
        amount: Optional[float] = None,
        contracts: Optional[float] = None,
    ) -> CallResult:
        """private/edit; only positive sizes are sent."""
        method = "private/edit"
        problems = []
        if not order_id:
            problems.append("order_id is required")
        if not (amount or 0) > 0 and not (contracts or 0) > 0:
            problems.append("amount or contracts must be positive")
        if problems:
            return self._reject(method, problems)

        params: Dict[str, Any] = {"order_id": order_id}
        if amount is not None and amount > 0:
            params["amount"] = amount
        if contracts is not None and contracts > 0:
            params["contracts"] = contracts

        def project(result: Any) -> Order:
            raw_order = result.get("order") if isinstance(result, dict) else None
            return Order.from_payload(raw_order)

        return self._call(
            method,
            params,
            project,
            message=lambda _: f"Order {order_id} has been modified successfully.",
        )

    def cancel_order(self, order_id: str) -> CallResult:
        """private/cancel; succeeds only when the exchange reports the order cancelled."""
        method = "private/cancel"
        if not order_id:
            return self._reject(method, ["order_id is required"])

        def project(result: Any) -> Order:
            cancelled = Order.from_payload(result)
            if cancelled.state != "cancelled":
                raise ApiError(ErrorInfo(
                    message=f"Order {order_id} was not cancelled (state: {cancelled.state or 'unknown'})",
                ))
            return cancelled

        return self._call(
            method,
            {"order_id": order_id},
            project,
            message=lambda _: f"Order {order_id} has been cancelled successfully.",
        )

    def background(self, operation: str, *args: Any, **kwargs: Any) -> CallHandle:
        """Run ``operation`` (a method name of this client) on the dispatcher."""
        fn = getattr(self, operation, None)
        if operation.startswith("_") or not callable(fn):
            raise ValueError(f"Unknown operation: {operation}")
        return self.dispatcher.submit(operation, fn, *args, **kwargs)

    def close(self) -> None:
        """Close the HTTP transport."""
        self.transport.close()

    def __enter__(self) -> "DeskClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
