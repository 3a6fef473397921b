"""
Tests for call results and background call handles.
"""
from __future__ import annotations

import threading

from deribit_desk.calls import CallDispatcher, CallResult, CallState, CallStatus
from deribit_desk.deribit.base_client import ApiError, ErrorKind
from deribit_desk.models import ErrorInfo, Order


class TestCallResult:

    def test_from_api_error(self):
        error = ApiError(ErrorInfo(code=11044, message="not_open_order"), http_status=400)
        result = CallResult.from_error("private/cancel", error, request_id=9)

        assert result.status == CallStatus.FAILURE
        assert result.error_kind == ErrorKind.API
        assert result.error.code == 11044
        assert result.request_id == 9
        assert result.http_status == 400

    def test_to_dict_serializes_models(self):
        result = CallResult.success("private/get_open_orders", [Order(order_id="A")])
        payload = result.to_dict()

        assert payload["status"] == "success"
        assert payload["data"][0]["order_id"] == "A"
        assert payload["error_kind"] is None


class TestCallDispatcher:

    def test_handle_goes_pending_then_done(self):
        release = threading.Event()

        def slow() -> CallResult:
            release.wait(5)
            return CallResult.success("public/test", "1.0")

        dispatcher = CallDispatcher(timeout=5)
        handle = dispatcher.submit("test_connectivity", slow)

        assert handle.state == CallState.PENDING
        assert handle.is_loading

        release.set()
        result = handle.wait(5)

        assert handle.state == CallState.DONE
        assert result.ok
        assert dispatcher.get(handle.call_id) is handle

    def test_timeout_finishes_handle(self):
        release = threading.Event()

        def hang() -> CallResult:
            release.wait(5)
            return CallResult.success("public/test", "late")

        handle = CallDispatcher(timeout=0.05).submit("test_connectivity", hang)
        result = handle.wait(2)
        release.set()

        assert handle.state == CallState.DONE
        assert not result.ok
        assert result.error_kind == ErrorKind.TRANSPORT
        assert "timed out" in result.message

    def test_cancel_discards_late_result(self):
        release = threading.Event()
        finished = threading.Event()

        def slow() -> CallResult:
            release.wait(5)
            finished.set()
            return CallResult.success("public/test", "late")

        handle = CallDispatcher(timeout=5).submit("test_connectivity", slow)
        assert handle.cancel()
        release.set()
        finished.wait(2)

        assert handle.cancelled
        assert handle.state == CallState.DONE
        assert handle.result.message == "Call cancelled"
        assert not handle.cancel()

    def test_crashing_callable_becomes_failure(self):
        def boom() -> CallResult:
            raise RuntimeError("kaboom")

        handle = CallDispatcher(timeout=5).submit("test_connectivity", boom)
        result = handle.wait(5)

        assert not result.ok
        assert "kaboom" in result.message

    def test_pending_lists_in_flight_calls(self):
        release = threading.Event()
        dispatcher = CallDispatcher(timeout=5)
        handle = dispatcher.submit("x", lambda: (release.wait(5), CallResult.success("x", None))[1])

        assert handle in dispatcher.pending()
        release.set()
        handle.wait(5)
        assert dispatcher.pending() == []

    def test_to_dict(self):
        handle = CallDispatcher(timeout=5).submit("x", lambda: CallResult.success("x", 1))
        handle.wait(5)
        payload = handle.to_dict()

        assert payload["state"] == "done"
        assert payload["is_loading"] is False
        assert payload["result"]["data"] == 1
