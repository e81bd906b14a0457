"""Duplex transports and resilient turn delivery"""

from .base import DuplexTransport, OutboundTurn, StreamCallbacks, TransportEvent
from .delivery import TurnDelivery
from .websocket import WebSocketTransport

__all__ = [
    "DuplexTransport",
    "OutboundTurn",
    "StreamCallbacks",
    "TransportEvent",
    "TurnDelivery",
    "WebSocketTransport",
]
