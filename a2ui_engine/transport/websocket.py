"""WebSocket duplex transport.

Stream sequence, one connection per delivered turn:
1. Connect to the agent endpoint
2. Send the turn as ``{"type": "turn", "turn": {id, role, content}}``
3. Receive event frames ``{"event": kind, "data": ...}`` until ``complete``
"""
from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Optional

import websockets

from .base import OutboundTurn, TransportEvent

logger = logging.getLogger(__name__)

DEFAULT_OPEN_TIMEOUT = 10.0


class WebSocketTransport:
    """Opens a fresh WebSocket connection for every turn."""

    def __init__(
        self,
        url: str,
        open_timeout: float = DEFAULT_OPEN_TIMEOUT,
        auth_token: Optional[str] = None,
    ) -> None:
        self.url = url
        self.open_timeout = open_timeout
        self._auth_token = auth_token

    def _turn_frame(self, turn: OutboundTurn) -> str:
        payload = {"type": "turn", "turn": turn.to_dict()}
        if self._auth_token:
            payload["token"] = self._auth_token
        return json.dumps(payload)

    async def open_stream(self, turn: OutboundTurn) -> AsyncIterator[TransportEvent]:
        """Send ``turn`` and yield response events.

        Raises:
            OSError, websockets.exceptions.WebSocketException: On connection
                failure; the delivery layer retries these
        """
        logger.debug(f"Connecting to agent: {self.url}")
        async with websockets.connect(self.url, open_timeout=self.open_timeout) as ws:
            await ws.send(self._turn_frame(turn))
            logger.debug(f"Turn {turn.id} sent")

            async for raw in ws:
                event = TransportEvent.from_frame(raw)
                if event is None:
                    continue
                yield event
                if event.kind == "complete":
                    return

        # Server closed without a completion frame
        yield TransportEvent(kind="complete")


__all__ = [
    "DEFAULT_OPEN_TIMEOUT",
    "WebSocketTransport",
]
