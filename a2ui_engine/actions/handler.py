"""
User action handling.

Validates outbound userAction and error envelopes, resolves action context
against the source surface's data model and hands valid envelopes to the
delivery layer. An invalid envelope is logged and never sent.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional

from ..errors import InvalidActionError, InvalidMessageError
from ..protocol.messages import ErrorMessage
from ..surface.binding import BindingResolver
from ..surface.engine import SurfaceEngine
from .codec import build_error, encode_user_action, iso_timestamp

if TYPE_CHECKING:
    from ..transport.base import StreamCallbacks
    from ..transport.delivery import TurnDelivery

logger = logging.getLogger(__name__)


class ActionHandler:
    """Sends user actions and error reports for the surfaces of an engine"""

    def __init__(self, delivery: TurnDelivery, engine: SurfaceEngine):
        self.delivery = delivery
        self.engine = engine
        self._resolver = BindingResolver()

    def _data_model(self, surface_id: Any) -> Mapping[str, Any]:
        surface = self.engine.get_surface(surface_id) if isinstance(surface_id, str) else None
        return surface.data_model if surface else {}

    async def handle_action(
        self,
        action: Mapping[str, Any],
        callbacks: Optional[StreamCallbacks] = None,
    ) -> bool:
        """
        Validate and send a userAction.

        ``timestamp`` is stamped with the current time when absent.

        Args:
            action: ``{name, surfaceId, sourceComponentId, timestamp?, context?}``
            callbacks: Callbacks for the agent's response stream

        Returns:
            True if the action was delivered
        """
        payload = dict(action)
        payload.setdefault("timestamp", iso_timestamp())

        try:
            message = encode_user_action(
                payload,
                data_model=self._data_model(payload.get("surfaceId")),
                resolver=self._resolver,
            )
        except InvalidActionError as e:
            logger.error(f"Not sending user action: {e}")
            return False

        logger.debug(f"Sending action {message.name} from {message.sourceComponentId}")
        return await self.delivery.send_user_action(message, callbacks)

    async def handle_error(
        self,
        surface_id: str,
        message: str,
        code: Optional[str] = None,
        component_id: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Build and send an error report; returns True if delivered"""
        try:
            report = build_error(surface_id, message, code, component_id, context)
        except InvalidMessageError as e:
            logger.error(f"Not sending error report: {e}")
            return False
        return await self.delivery.send_error(report)

    async def send_reports(self, reports: list[ErrorMessage]) -> int:
        """Send engine error reports; returns how many were delivered"""
        delivered = 0
        for report in reports:
            if await self.delivery.send_error(report):
                delivered += 1
        return delivered


__all__ = [
    "ActionHandler",
]
