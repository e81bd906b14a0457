"""
A2UI surface protocol engine.

Turns a stream of agent-to-UI protocol messages into per-surface component
trees, resolves data bindings against each surface's data model, and sends
user actions back to the agent over a resilient duplex transport.
"""

__version__ = "0.8.0"

from .client import A2UIClient
from .errors import A2UIError, ErrorCode
from .protocol.messages import A2UIMessage, parse_message
from .surface.engine import SurfaceEngine

__all__ = [
    "__version__",
    "A2UIClient",
    "A2UIError",
    "ErrorCode",
    "A2UIMessage",
    "parse_message",
    "SurfaceEngine",
]
