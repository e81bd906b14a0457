"""
Conversation turns and the session-scoped routing context.

The context tracks which assistant turn is currently receiving protocol
messages and which one is receiving streamed text. Both references are set
when a turn is created and cleared when the user sends a new request.
"""
from __future__ import annotations

import itertools
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Literal, Optional

from ..protocol.messages import A2UIMessage

logger = logging.getLogger(__name__)

TurnRole = Literal["user", "assistant"]

SURFACE_ID_PREFIX = "surface-"
_SURFACE_TURN_RE = re.compile(r"^surface-(msg-\d+-\d+)$")
_counter = itertools.count(1)


def generate_turn_id() -> str:
    """Generate a turn id of the form ``msg-<epoch ms>-<counter>``"""
    return f"msg-{int(time.time() * 1000)}-{next(_counter)}"


def surface_id_for_turn(turn_id: str) -> str:
    return f"{SURFACE_ID_PREFIX}{turn_id}"


def extract_turn_id_from_surface_id(surface_id: str) -> Optional[str]:
    """
    Recover the turn id embedded in a generated surface id.

    Returns:
        Turn id, or None if the surface id was not generated for a turn
    """
    if not isinstance(surface_id, str):
        return None
    match = _SURFACE_TURN_RE.match(surface_id)
    return match.group(1) if match else None


@dataclass
class Turn:
    """One conversational turn and the protocol messages recorded for it"""
    turn_id: str
    role: TurnRole
    content: str = ""
    messages: list[A2UIMessage] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)

    @property
    def is_empty_assistant(self) -> bool:
        return self.role == "assistant" and not self.content


class ConversationContext:
    """
    Session-scoped turn history passed into the router.

    ``current_turn_id`` is the assistant turn that receives protocol
    messages; ``streaming_turn_id`` the one that receives streamed text.
    """

    def __init__(self):
        self.turns: list[Turn] = []
        self.current_turn_id: Optional[str] = None
        self.streaming_turn_id: Optional[str] = None

    def __len__(self) -> int:
        return len(self.turns)

    def get_turn(self, turn_id: Optional[str]) -> Optional[Turn]:
        if turn_id is None:
            return None
        for turn in self.turns:
            if turn.turn_id == turn_id:
                return turn
        return None

    def add_user_turn(self, content: str) -> Turn:
        """Record a user request; the next assistant output starts a new turn"""
        turn = Turn(turn_id=generate_turn_id(), role="user", content=content)
        self.turns.append(turn)
        self.current_turn_id = None
        self.streaming_turn_id = None
        logger.debug(f"User turn {turn.turn_id} added")
        return turn

    def add_assistant_turn(self, content: str = "") -> Turn:
        turn = Turn(turn_id=generate_turn_id(), role="assistant", content=content)
        self.turns.append(turn)
        self.current_turn_id = turn.turn_id
        logger.debug(f"Assistant turn {turn.turn_id} added")
        return turn

    def trailing_empty_assistant(self) -> Optional[Turn]:
        """The last turn, if it is an assistant turn that has no text yet"""
        if self.turns and self.turns[-1].is_empty_assistant:
            return self.turns[-1]
        return None

    def active_turn(self) -> Turn:
        """
        The assistant turn that should receive the next protocol message.

        Uses the current turn if set, otherwise the last turn when it is an
        empty assistant turn, otherwise a newly created one. An earlier
        assistant turn that only carried UI is never reused.
        """
        turn = self.get_turn(self.current_turn_id)
        if turn is not None:
            return turn
        turn = self.trailing_empty_assistant()
        if turn is not None:
            self.current_turn_id = turn.turn_id
            return turn
        return self.add_assistant_turn()

    def append_assistant_text(self, delta: str) -> Turn:
        """Append streamed text to the streaming turn, creating it if needed"""
        turn = self.get_turn(self.streaming_turn_id)
        if turn is None:
            turn = self.active_turn()
            self.streaming_turn_id = turn.turn_id
        turn.content += delta
        return turn

    def clear_active(self) -> None:
        self.current_turn_id = None


__all__ = [
    "TurnRole",
    "SURFACE_ID_PREFIX",
    "generate_turn_id",
    "surface_id_for_turn",
    "extract_turn_id_from_surface_id",
    "Turn",
    "ConversationContext",
]
