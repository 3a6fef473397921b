"""
Deribit JSON-RPC plumbing.

Provides the HTTP transport, the request envelope builder, the response
interpreter and the shared error types used by the desk client.
"""
from deribit_desk.deribit.base_client import (
    ApiError,
    AuthenticationError,
    ClientValidationError,
    DeribitAPIError,
    ErrorKind,
    HttpTransport,
    ParseError,
    TransportError,
    TransportResponse,
)
from deribit_desk.deribit.envelope import JsonRpcRequest, RequestIdGenerator, build_request
from deribit_desk.deribit.interpreter import Failure, Malformed, Success, interpret

__all__ = [
    "ApiError",
    "AuthenticationError",
    "ClientValidationError",
    "DeribitAPIError",
    "ErrorKind",
    "HttpTransport",
    "ParseError",
    "TransportError",
    "TransportResponse",
    "JsonRpcRequest",
    "RequestIdGenerator",
    "build_request",
    "Failure",
    "Malformed",
    "Success",
    "interpret",
]
