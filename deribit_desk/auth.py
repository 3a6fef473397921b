"""
Client-credentials authentication against public/auth.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from deribit_desk.deribit.base_client import (
    AuthenticationError,
    ErrorKind,
    HttpTransport,
)
from deribit_desk.deribit.envelope import RequestIdGenerator, build_request, method_url
from deribit_desk.deribit.interpreter import Failure, Malformed, interpret
from deribit_desk.models import Credentials, Session, _as_int

logger = logging.getLogger(__name__)

AUTH_METHOD = "public/auth"


def now_ms() -> int:
    """Milliseconds since the epoch."""
    return int(time.time() * 1000)


class Authenticator:
    """
    Exchanges client credentials for a Session.

    The request timestamp is taken from ``clock`` when authenticate() runs,
    so a long-lived Authenticator never sends a stale one.
    """

    def __init__(
        self,
        transport: HttpTransport,
        base_url: str,
        ids: Optional[RequestIdGenerator] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.transport = transport
        self.base_url = base_url
        self.ids = ids or RequestIdGenerator()
        self.clock = clock

    def authenticate(self, credentials: Credentials) -> Session:
        """
        Run the client_credentials grant.

        Returns:
            A fresh Session.

        Raises:
            AuthenticationError: If no access token came back.
        """
        if not credentials.client_id or not credentials.client_secret:
            raise AuthenticationError(
                "Client ID and secret are required for authentication",
                kind=ErrorKind.VALIDATION,
            )

        issued_at = self.clock()
        request = build_request(
            AUTH_METHOD,
            {
                "grant_type": "client_credentials",
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
                "timestamp": issued_at,
            },
            self.ids,
        )

        response = self.transport.send(method_url(self.base_url, AUTH_METHOD), request.to_payload())
        if response.is_empty:
            logger.error("Failed to receive response from authentication request: %s", response.error)
            raise AuthenticationError(
                response.error or "Empty response from authentication request",
                kind=ErrorKind.TRANSPORT,
                http_status=response.status_code,
            )

        outcome = interpret(response.body)
        if isinstance(outcome, Malformed):
            raise AuthenticationError(outcome.diagnostic, kind=ErrorKind.PARSE, http_status=response.status_code)
        if isinstance(outcome, Failure):
            raise AuthenticationError(
                f"Authentication rejected: {outcome.message}",
                kind=ErrorKind.API,
                http_status=response.status_code,
            )

        result: Any = outcome.result
        token = result.get("access_token") if isinstance(result, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthenticationError("Response has no result.access_token", kind=ErrorKind.PARSE)

        refresh_token = result.get("refresh_token")
        expires_in = result.get("expires_in")
        scope = result.get("scope")

        session = Session(
            access_token=token,
            refresh_token=refresh_token if isinstance(refresh_token, str) else "",
            expires_in=_as_int(expires_in),
            scope=scope if isinstance(scope, str) else "",
            issued_at_ms=issued_at,
        )
        logger.info(
            "Authenticated client %s (expires in %ss, scope=%r)",
            credentials.client_id,
            session.expires_in,
            session.scope,
        )
        return session
