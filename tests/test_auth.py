"""
Tests for the client-credentials authenticator.
"""
from __future__ import annotations

import pytest

from conftest import FakeTransport
from deribit_desk.auth import Authenticator
from deribit_desk.deribit.base_client import AuthenticationError, ErrorKind
from deribit_desk.deribit.envelope import RequestIdGenerator
from deribit_desk.models import Credentials


def _authenticator(responses, clock=lambda: 1_000) -> tuple[Authenticator, FakeTransport]:
    transport = FakeTransport(responses)
    return Authenticator(transport, "https://test.deribit.com", clock=clock), transport


class TestAuthenticate:

    def test_full_token_response(self):
        auth, _ = _authenticator([{
            "result": {"access_token": "tok123", "refresh_token": "r1", "expires_in": 900, "scope": "all"}
        }])

        session = auth.authenticate(Credentials(client_id="X", client_secret="Y"))

        assert session.access_token == "tok123"
        assert session.refresh_token == "r1"
        assert session.expires_in == 900
        assert session.scope == "all"
        assert session.issued_at_ms == 1_000

    def test_request_shape(self):
        auth, transport = _authenticator([{"result": {"access_token": "tok"}}])
        auth.authenticate(Credentials(client_id="X", client_secret="Y"))

        call = transport.last
        assert call["url"] == "https://test.deribit.com/api/v2/public/auth"
        assert call["token"] is None
        assert call["body"]["method"] == "public/auth"
        assert call["body"]["params"] == {
            "grant_type": "client_credentials",
            "client_id": "X",
            "client_secret": "Y",
            "timestamp": 1_000,
        }

    def test_optional_fields_default(self):
        auth, _ = _authenticator([{
            "result": {"access_token": "tok", "refresh_token": 5, "expires_in": "900"}
        }])

        session = auth.authenticate(Credentials(client_id="X", client_secret="Y"))

        assert session.refresh_token == ""
        assert session.expires_in == 0
        assert session.scope == ""

    def test_whole_float_lifetime_is_kept(self):
        auth, _ = _authenticator([{"result": {"access_token": "t", "expires_in": 900.0}}])

        session = auth.authenticate(Credentials(client_id="X", client_secret="Y"))

        assert session.expires_in == 900
        assert session.is_expired(session.issued_at_ms + 900_000)

    def test_timestamp_taken_per_call(self):
        """Each authenticate() reads the clock at call time."""
        ticks = iter([111, 222])
        auth, transport = _authenticator(
            [{"result": {"access_token": "a"}}, {"result": {"access_token": "b"}}],
            clock=lambda: next(ticks),
        )
        creds = Credentials(client_id="X", client_secret="Y")

        first = auth.authenticate(creds)
        second = auth.authenticate(creds)

        assert [c["body"]["params"]["timestamp"] for c in transport.calls] == [111, 222]
        assert (first.issued_at_ms, second.issued_at_ms) == (111, 222)

    def test_uses_shared_id_generator(self):
        ids = RequestIdGenerator(start=40)
        transport = FakeTransport([{"result": {"access_token": "a"}}])
        Authenticator(transport, "https://test.deribit.com", ids=ids).authenticate(
            Credentials(client_id="X", client_secret="Y")
        )

        assert transport.last["body"]["id"] == 40
        assert ids.next_id() == 41


class TestAuthenticateFailures:

    def test_empty_response(self):
        auth, _ = _authenticator([""])
        with pytest.raises(AuthenticationError) as exc_info:
            auth.authenticate(Credentials(client_id="X", client_secret="Y"))
        assert exc_info.value.kind == ErrorKind.TRANSPORT

    def test_unparsable_response(self):
        auth, _ = _authenticator(["<html>"])
        with pytest.raises(AuthenticationError) as exc_info:
            auth.authenticate(Credentials(client_id="X", client_secret="Y"))
        assert exc_info.value.kind == ErrorKind.PARSE

    def test_missing_access_token(self):
        auth, _ = _authenticator([{"result": {"refresh_token": "r"}}])
        with pytest.raises(AuthenticationError):
            auth.authenticate(Credentials(client_id="X", client_secret="Y"))

    def test_api_error(self):
        auth, _ = _authenticator([{"error": {"code": 13004, "message": "invalid_credentials"}}])
        with pytest.raises(AuthenticationError) as exc_info:
            auth.authenticate(Credentials(client_id="X", client_secret="Y"))
        assert exc_info.value.kind == ErrorKind.API
        assert "invalid_credentials" in exc_info.value.message

    def test_missing_credentials_not_sent(self):
        auth, transport = _authenticator([])
        with pytest.raises(AuthenticationError) as exc_info:
            auth.authenticate(Credentials(client_id="", client_secret=""))
        assert exc_info.value.kind == ErrorKind.VALIDATION
        assert transport.calls == []
