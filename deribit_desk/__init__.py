"""
Deribit testnet trading desk.

Provides the desk client (authenticate, instruments, order books, orders,
positions) plus CLI and HTTP front ends.
"""
from deribit_desk.calls import CallDispatcher, CallHandle, CallResult, CallState, CallStatus
from deribit_desk.deribit_client import DeskClient
from deribit_desk.models import Credentials, OrderRequest, Session

__all__ = [
    "CallDispatcher",
    "CallHandle",
    "CallResult",
    "CallState",
    "CallStatus",
    "DeskClient",
    "Credentials",
    "OrderRequest",
    "Session",
]

__version__ = "0.1.0"
