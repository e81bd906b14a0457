"""
A2UI client: the conversation-facing entry point.

Data flow:
- user text -> ConversationContext -> TurnDelivery -> agent
- agent stream -> MessageRouter (turn association, dedupe) -> SurfaceEngine
- widget input -> SurfaceEngine.update_data_model
- widget action -> ActionHandler (validate, resolve context) -> TurnDelivery
- engine error reports -> ActionHandler -> TurnDelivery
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Callable, Optional

from .actions.handler import ActionHandler
from .config.schema import A2UIEngineConfig
from .errors import DeliveryError, InvalidMessageError
from .protocol.messages import (
    A2UIMessage,
    BeginRenderingMessage,
    DeleteSurfaceMessage,
    SurfaceUpdateMessage,
    parse_message,
    sort_messages,
)
from .routing.router import MessageRouter
from .routing.turns import ConversationContext
from .surface.catalog import ComponentCatalog
from .surface.engine import SurfaceEngine
from .surface.render import RenderedNode
from .transport.base import DuplexTransport, OutboundTurn, StreamCallbacks, TransportEvent
from .transport.delivery import TurnDelivery
from .transport.websocket import WebSocketTransport

logger = logging.getLogger(__name__)


class A2UIClient:
    """
    Wires routing, surfaces, actions and delivery for one conversation.

    Example:
        client = A2UIClient(WebSocketTransport("ws://localhost:8765"))
        await client.send_user_message("Show me a signup form")
        tree = client.render("surface-msg-1700000000000-2")
    """

    def __init__(
        self,
        transport: Optional[DuplexTransport] = None,
        config: Optional[A2UIEngineConfig] = None,
        catalog: Optional[ComponentCatalog] = None,
        on_surface_changed: Optional[Callable[[str], Any]] = None,
    ):
        self.config = config or A2UIEngineConfig()
        self.context = ConversationContext()
        self.engine = SurfaceEngine(
            catalog=catalog,
            prune_deleted=self.config.surface.prune_deleted,
            max_render_depth=self.config.surface.max_render_depth,
        )
        self.router = MessageRouter(
            self.context,
            self.config.router.auto_surface_ids,
            on_error=self.engine.report,
        )
        # beginRendering messages that arrived before their components
        self._waiting_begin: dict[str, BeginRenderingMessage] = {}
        self.delivery = (
            TurnDelivery(transport, self.config.retry.to_retry_config())
            if transport is not None
            else None
        )
        self.actions = ActionHandler(self.delivery, self.engine) if self.delivery else None
        self._on_surface_changed = on_surface_changed

    @classmethod
    def from_config(cls, config: A2UIEngineConfig, **kwargs: Any) -> "A2UIClient":
        """Create a client with a WebSocket transport when a URL is configured"""
        transport = None
        if config.transport.url:
            transport = WebSocketTransport(
                config.transport.url,
                open_timeout=config.transport.open_timeout,
                auth_token=config.transport.auth_token,
            )
        return cls(transport=transport, config=config, **kwargs)

    @property
    def is_connected(self) -> bool:
        return self.delivery is not None and self.delivery.is_connected

    def _require_actions(self) -> ActionHandler:
        if self.actions is None:
            raise DeliveryError("No transport configured")
        return self.actions

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def _record(self, message: A2UIMessage | dict[str, Any] | str) -> Optional[A2UIMessage]:
        if not isinstance(message, A2UIMessage):
            try:
                message = parse_message(message)
            except InvalidMessageError as e:
                logger.warning(f"Dropping invalid inbound message: {e}")
                return None

        turn_id = self.router.add_message(message)
        if turn_id is None:
            return None
        return self.context.get_turn(turn_id).messages[-1]

    def _apply(self, message: A2UIMessage) -> bool:
        """Apply a recorded message, retrying a beginRendering that came too early"""
        surface_id = message.surfaceId
        accepted = self.engine.apply_message(message)

        if isinstance(message, BeginRenderingMessage):
            if accepted:
                self._waiting_begin.pop(surface_id, None)
            elif surface_id:
                logger.debug(f"Holding beginRendering for {surface_id} until its components arrive")
                self._waiting_begin[surface_id] = message
        elif isinstance(message, DeleteSurfaceMessage):
            self._waiting_begin.pop(surface_id, None)
        elif isinstance(message, SurfaceUpdateMessage) and accepted and surface_id in self._waiting_begin:
            if self.engine.apply_message(self._waiting_begin[surface_id]):
                logger.debug(f"Surface {surface_id} ready after deferred beginRendering")
                del self._waiting_begin[surface_id]
        return accepted

    def _notify(self, surface_ids: Iterable[str]) -> None:
        if self._on_surface_changed is None:
            return
        for surface_id in dict.fromkeys(surface_ids):
            self._on_surface_changed(surface_id)

    def handle_a2ui_message(self, message: A2UIMessage | dict[str, Any] | str) -> bool:
        """
        Route and apply one inbound protocol message.

        Returns:
            True if a surface accepted the message
        """
        recorded = self._record(message)
        if recorded is None:
            return False
        accepted = self._apply(recorded)
        if accepted:
            self._notify([recorded.surfaceId])
        return accepted

    def handle_a2ui_batch(self, messages: Iterable[A2UIMessage | dict[str, Any] | str]) -> list[bool]:
        """
        Route and apply a delivery batch in protocol order.

        Returns:
            Acceptance flag per applied message, in protocol order
        """
        parsed = []
        for message in messages:
            if isinstance(message, A2UIMessage):
                parsed.append(message)
                continue
            try:
                parsed.append(parse_message(message))
            except InvalidMessageError as e:
                logger.warning(f"Dropping invalid inbound message: {e}")

        results = []
        changed = []
        for message in sort_messages(parsed):
            recorded = self._record(message)
            if recorded is None:
                results.append(False)
                continue
            accepted = self._apply(recorded)
            results.append(accepted)
            if accepted:
                changed.append(recorded.surfaceId)
        self._notify(changed)
        return results

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def _stream_callbacks(self, callbacks: Optional[StreamCallbacks]) -> StreamCallbacks:
        outer = callbacks or StreamCallbacks()

        async def on_text_delta(delta: str) -> None:
            self.context.append_assistant_text(delta)
            await outer.dispatch(TransportEvent(kind="text_delta", data=delta))

        async def on_a2ui_message(message: A2UIMessage) -> None:
            self.handle_a2ui_message(message)
            await outer.dispatch(TransportEvent(kind="a2ui_message", data=message))

        async def on_complete() -> None:
            await self.flush_errors()
            await outer.dispatch(TransportEvent(kind="complete"))

        return StreamCallbacks(
            on_text_delta=on_text_delta,
            on_a2ui_message=on_a2ui_message,
            on_error=outer.on_error,
            on_complete=on_complete,
            on_state_snapshot=outer.on_state_snapshot,
            on_state_delta=outer.on_state_delta,
        )

    async def send_user_message(
        self,
        text: str,
        callbacks: Optional[StreamCallbacks] = None,
    ) -> OutboundTurn:
        """
        Record a user turn and stream the agent's response into the surfaces.

        Raises:
            DeliveryError: If delivery failed after all retries
        """
        self._require_actions()
        self.context.add_user_turn(text)
        return await self.delivery.stream_agent_response(text, self._stream_callbacks(callbacks))

    async def dispatch_action(
        self,
        action: dict[str, Any],
        callbacks: Optional[StreamCallbacks] = None,
    ) -> bool:
        """Validate and send a user action; the response updates the surfaces"""
        return await self._require_actions().handle_action(action, self._stream_callbacks(callbacks))

    async def report_error(
        self,
        surface_id: str,
        message: str,
        code: Optional[str] = None,
        component_id: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> bool:
        return await self._require_actions().handle_error(surface_id, message, code, component_id, context)

    async def flush_errors(self) -> int:
        """Send queued engine error reports; returns how many were delivered"""
        reports = self.engine.drain_errors()
        if not reports:
            return 0
        return await self._require_actions().send_reports(reports)

    async def retry_pending(self) -> int:
        self._require_actions()
        return await self.delivery.retry_pending()

    # ------------------------------------------------------------------
    # Surfaces
    # ------------------------------------------------------------------

    def update_data_model(self, surface_id: str, path: str, value: Any) -> bool:
        updated = self.engine.update_data_model(surface_id, path, value)
        if updated:
            self._notify([surface_id])
        return updated

    def render(self, surface_id: str) -> Optional[RenderedNode]:
        return self.engine.get_renderable_tree(surface_id)


__all__ = [
    "A2UIClient",
]
