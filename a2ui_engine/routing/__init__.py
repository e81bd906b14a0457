"""Turn tracking and inbound message routing"""

from .router import (
    MessageRouter,
    find_turn_for_surface,
    group_by_surface,
    has_non_delete_messages,
    route_inbound,
    sort_messages,
)
from .turns import (
    ConversationContext,
    Turn,
    extract_turn_id_from_surface_id,
    generate_turn_id,
    surface_id_for_turn,
)

__all__ = [
    "MessageRouter",
    "find_turn_for_surface",
    "group_by_surface",
    "has_non_delete_messages",
    "route_inbound",
    "sort_messages",
    "ConversationContext",
    "Turn",
    "extract_turn_id_from_surface_id",
    "generate_turn_id",
    "surface_id_for_turn",
]
