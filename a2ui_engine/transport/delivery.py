"""
Turn delivery with retry and a pending queue.

Each attempt opens a fresh duplex stream, sends the turn and consumes the
response. A turn that still fails after the configured retries is reported to
the caller and parked in ``pending`` until ``retry_pending`` is called.
"""
from __future__ import annotations

import logging
from contextlib import aclosing
from typing import Any, Callable, Optional

from ..actions.codec import format_for_transport
from ..errors import DeliveryError
from ..infra.retry_policy import RetryConfig, retry_async
from ..protocol.messages import A2UIMessage, ErrorMessage, UserActionMessage
from .base import DuplexTransport, OutboundTurn, StreamCallbacks

logger = logging.getLogger(__name__)

SINGLE_ATTEMPT = RetryConfig(attempts=1)


class TurnDelivery:
    """
    Delivers outbound turns over a duplex transport.

    A turn is never sent twice concurrently: ``send`` skips a turn whose
    previous delivery is still in flight.
    """

    def __init__(
        self,
        transport: DuplexTransport,
        retry_config: Optional[RetryConfig] = None,
        on_retry: Optional[Callable[[dict[str, Any]], None]] = None,
    ):
        self.transport = transport
        self.retry_config = retry_config or RetryConfig.from_retries()
        self.on_retry = on_retry
        self.pending: list[OutboundTurn] = []
        self._callbacks: dict[str, StreamCallbacks] = {}
        self._in_flight: set[str] = set()
        self._open_streams = 0

    @property
    def is_connected(self) -> bool:
        return self._open_streams > 0

    def is_in_flight(self, turn_id: str) -> bool:
        return turn_id in self._in_flight

    async def _deliver_once(self, turn: OutboundTurn, callbacks: StreamCallbacks) -> None:
        self._open_streams += 1
        try:
            async with aclosing(self.transport.open_stream(turn)) as stream:
                async for event in stream:
                    await callbacks.dispatch(event)
                    if event.kind == "complete":
                        break
        finally:
            self._open_streams -= 1

    def _enqueue(self, turn: OutboundTurn, callbacks: StreamCallbacks) -> None:
        if all(queued.id != turn.id for queued in self.pending):
            self.pending.append(turn)
        self._callbacks[turn.id] = callbacks

    async def send(
        self,
        turn: OutboundTurn,
        callbacks: Optional[StreamCallbacks] = None,
        retry: Optional[RetryConfig] = None,
    ) -> bool:
        """
        Deliver a turn, retrying on transport failure.

        Args:
            turn: Turn to deliver
            callbacks: Response stream callbacks
            retry: Retry policy for this call (defaults to the delivery policy)

        Returns:
            True if delivered, False if the turn was already in flight

        Raises:
            DeliveryError: If every attempt failed; the turn is queued in ``pending``
        """
        if turn.id in self._in_flight:
            logger.debug(f"Turn {turn.id} already in flight, skipping")
            return False

        callbacks = callbacks or StreamCallbacks()
        config = retry or self.retry_config
        self.pending = [queued for queued in self.pending if queued.id != turn.id]
        self._callbacks.pop(turn.id, None)
        self._in_flight.add(turn.id)

        try:
            await retry_async(
                lambda: self._deliver_once(turn, callbacks),
                config=config,
                on_retry=self.on_retry,
                label=f"turn {turn.id}",
            )
        except Exception as e:
            logger.error(f"Delivery of turn {turn.id} failed after {config.attempts} attempts: {e}")
            self._enqueue(turn, callbacks)
            error = DeliveryError(
                f"Delivery failed after {config.attempts} attempts: {e}",
                turn_id=turn.id,
                attempts=config.attempts,
            )
            await callbacks.error(error)
            raise error from e
        finally:
            self._in_flight.discard(turn.id)

        logger.debug(f"Turn {turn.id} delivered")
        return True

    async def stream_agent_response(
        self,
        text: str,
        callbacks: Optional[StreamCallbacks] = None,
        retry: Optional[RetryConfig] = None,
    ) -> OutboundTurn:
        """
        Send a user message and stream the agent's response.

        Raises:
            DeliveryError: If every attempt failed
        """
        turn = OutboundTurn(content=text)
        await self.send(turn, callbacks, retry)
        return turn

    async def _send_envelope(
        self,
        message: A2UIMessage,
        callbacks: Optional[StreamCallbacks],
    ) -> bool:
        turn = OutboundTurn(content=format_for_transport(message))
        try:
            await self.send(turn, callbacks, retry=SINGLE_ATTEMPT)
        except DeliveryError:
            logger.warning(f"{message.type} queued for retry as turn {turn.id}")
            return False
        return True

    async def send_user_action(
        self,
        action: UserActionMessage,
        callbacks: Optional[StreamCallbacks] = None,
    ) -> bool:
        """Send a validated userAction once; queue it on failure"""
        return await self._send_envelope(action, callbacks)

    async def send_error(
        self,
        error: ErrorMessage,
        callbacks: Optional[StreamCallbacks] = None,
    ) -> bool:
        """Send an error report once; queue it on failure"""
        return await self._send_envelope(error, callbacks)

    async def retry_pending(self) -> int:
        """
        Flush the pending queue once.

        Turns that fail again stay queued; turns still in flight are skipped.

        Returns:
            Number of turns delivered
        """
        if not self.pending:
            return 0

        queued = list(self.pending)
        logger.info(f"Retrying {len(queued)} pending turn(s)")
        delivered = 0
        for turn in queued:
            if turn.id in self._in_flight:
                continue
            callbacks = self._callbacks.get(turn.id)
            try:
                if await self.send(turn, callbacks, retry=SINGLE_ATTEMPT):
                    delivered += 1
            except DeliveryError:
                continue
        return delivered


__all__ = [
    "SINGLE_ATTEMPT",
    "TurnDelivery",
]
