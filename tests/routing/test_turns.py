"""
Unit tests for conversation turns

Tests turn id generation, surface id embedding and active-turn tracking.
"""

import re

import pytest

from a2ui_engine.routing.turns import (
    ConversationContext,
    extract_turn_id_from_surface_id,
    generate_turn_id,
    surface_id_for_turn,
)


class TestTurnIds:
    """Test turn and surface id helpers."""

    def test_turn_id_format(self):
        assert re.match(r"^msg-\d+-\d+$", generate_turn_id())

    def test_turn_ids_unique(self):
        assert len({generate_turn_id() for _ in range(50)}) == 50

    def test_surface_id_round_trip(self):
        turn_id = generate_turn_id()
        assert extract_turn_id_from_surface_id(surface_id_for_turn(turn_id)) == turn_id

    @pytest.mark.parametrize("surface_id", ["main", "surface-abc", "surface-msg-1-x", "xsurface-msg-1-2", None])
    def test_non_generated_surface_ids(self, surface_id):
        assert extract_turn_id_from_surface_id(surface_id) is None


class TestConversationContext:
    """Test active-turn tracking."""

    def test_active_turn_created_on_demand(self):
        context = ConversationContext()
        turn = context.active_turn()
        assert turn.role == "assistant"
        assert context.current_turn_id == turn.turn_id
        assert context.active_turn() is turn

    def test_user_turn_clears_references(self):
        context = ConversationContext()
        first = context.active_turn()
        context.append_assistant_text("hello")
        context.add_user_turn("next question")

        assert context.current_turn_id is None
        assert context.streaming_turn_id is None
        second = context.active_turn()
        assert second is not first

    def test_reuses_trailing_empty_assistant(self):
        context = ConversationContext()
        empty = context.add_assistant_turn()
        context.clear_active()
        assert context.active_turn() is empty

    def test_ui_only_turn_not_reused_after_user_request(self):
        context = ConversationContext()
        context.add_user_turn("first question")
        ui_only = context.active_turn()
        context.add_user_turn("second question")

        assert ui_only.is_empty_assistant
        fresh = context.active_turn()
        assert fresh is not ui_only
        assert context.turns[-1] is fresh
        assert context.trailing_empty_assistant() is fresh

    def test_text_and_messages_share_turn(self):
        context = ConversationContext()
        context.add_user_turn("show a form")
        streamed = context.append_assistant_text("Here ")
        context.append_assistant_text("you go")

        assert streamed.content == "Here you go"
        assert context.active_turn() is streamed
        assert len(context) == 2

    def test_get_turn(self):
        context = ConversationContext()
        turn = context.add_user_turn("hi")
        assert context.get_turn(turn.turn_id) is turn
        assert context.get_turn("msg-0-0") is None
        assert context.get_turn(None) is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
