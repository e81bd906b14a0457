"""
Unit tests for WebSocketTransport

The websockets connection is replaced with an in-memory fake.
"""

import json

import pytest
from unittest.mock import AsyncMock, patch

from a2ui_engine.transport.base import OutboundTurn
from a2ui_engine.transport.websocket import WebSocketTransport


class FakeConnection:
    def __init__(self, frames):
        self.frames = list(frames)
        self.send = AsyncMock()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for frame in self.frames:
            yield frame


async def _collect(transport, turn):
    return [event async for event in transport.open_stream(turn)]


class TestWebSocketTransport:
    """Test WebSocketTransport functionality."""

    @pytest.mark.asyncio
    async def test_sends_turn_and_yields_events(self):
        connection = FakeConnection([
            '{"event": "text_delta", "data": "Hi"}',
            "garbage",
            '{"event": "a2ui_message", "data": {"deleteSurface": {"surfaceId": "s1"}}}',
            '{"event": "complete"}',
            '{"event": "text_delta", "data": "ignored"}',
        ])
        turn = OutboundTurn(content="hello")
        transport = WebSocketTransport("ws://agent.test", open_timeout=5.0, auth_token="secret")

        with patch("a2ui_engine.transport.websocket.websockets.connect", return_value=connection) as connect:
            events = await _collect(transport, turn)

        connect.assert_called_once_with("ws://agent.test", open_timeout=5.0)
        sent = json.loads(connection.send.await_args.args[0])
        assert sent == {"type": "turn", "turn": turn.to_dict(), "token": "secret"}
        assert [event.kind for event in events] == ["text_delta", "a2ui_message", "complete"]
        assert events[1].data.surfaceId == "s1"

    @pytest.mark.asyncio
    async def test_close_without_complete_still_completes(self):
        connection = FakeConnection(['{"event": "text_delta", "data": "partial"}'])
        transport = WebSocketTransport("ws://agent.test")

        with patch("a2ui_engine.transport.websocket.websockets.connect", return_value=connection):
            events = await _collect(transport, OutboundTurn(content="hello"))

        assert [event.kind for event in events] == ["text_delta", "complete"]
        sent = json.loads(connection.send.await_args.args[0])
        assert "token" not in sent

    @pytest.mark.asyncio
    async def test_connection_error_propagates(self):
        transport = WebSocketTransport("ws://agent.test")
        with patch(
            "a2ui_engine.transport.websocket.websockets.connect",
            side_effect=OSError("refused"),
        ):
            with pytest.raises(OSError):
                await _collect(transport, OutboundTurn(content="hello"))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
