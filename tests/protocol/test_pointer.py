"""
Unit tests for JSON Pointer helpers

Tests syntax validation, escaping, lookup and in-place assignment.
"""

from types import MappingProxyType

import pytest

from a2ui_engine.errors import ErrorCode, PointerError
from a2ui_engine.protocol.pointer import (
    escape_token,
    is_valid_pointer,
    join_pointer,
    pointer_exists,
    resolve_pointer,
    set_pointer,
    split_pointer,
    unescape_token,
)


class TestPointerSyntax:
    """Test pointer syntax validation."""

    @pytest.mark.parametrize("pointer", ["", "/", "/user", "/user/name", "/items/0", "/a~1b", "/m~0n"])
    def test_valid_pointers(self, pointer):
        assert is_valid_pointer(pointer)

    @pytest.mark.parametrize("pointer", ["user", "/bad~2", "/trailing~", None, 42])
    def test_invalid_pointers(self, pointer):
        assert not is_valid_pointer(pointer)

    def test_split_unescapes_tokens(self):
        assert split_pointer("/a~1b/m~0n") == ["a/b", "m~n"]
        assert split_pointer("") == []

    def test_split_rejects_bad_syntax(self):
        with pytest.raises(PointerError) as exc_info:
            split_pointer("no-slash")
        assert exc_info.value.error_code == ErrorCode.INVALID_POINTER
        assert exc_info.value.pointer == "no-slash"

    def test_escape_order(self):
        """~01 decodes to ~1, never to /"""
        assert unescape_token("~01") == "~1"
        assert escape_token("a/b~c") == "a~1b~0c"
        assert join_pointer(["a/b", "0"]) == "/a~1b/0"


class TestResolvePointer:
    """Test pointer lookup."""

    def test_resolve_nested(self):
        doc = {"user": {"name": "Ada", "tags": ["x", "y"]}}
        assert resolve_pointer(doc, "/user/name") == "Ada"
        assert resolve_pointer(doc, "/user/tags/1") == "y"
        assert resolve_pointer(doc, "") is doc

    def test_missing_key_raises(self):
        with pytest.raises(PointerError):
            resolve_pointer({"user": {}}, "/user/name")

    def test_bad_index_raises(self):
        doc = {"items": [1, 2]}
        with pytest.raises(PointerError):
            resolve_pointer(doc, "/items/2")
        with pytest.raises(PointerError):
            resolve_pointer(doc, "/items/01")

    def test_cannot_traverse_scalar(self):
        assert not pointer_exists({"a": 1}, "/a/b")

    def test_strings_are_not_traversed(self):
        assert not pointer_exists({"s": "abc"}, "/s/0")

    def test_read_only_mapping(self):
        doc = MappingProxyType({"user": {"name": "Ada"}})
        assert resolve_pointer(doc, "/user/name") == "Ada"

    def test_pointer_exists(self):
        assert pointer_exists({"a": None}, "/a")
        assert not pointer_exists({}, "/a")


class TestSetPointer:
    """Test in-place assignment."""

    def test_set_existing_parent(self):
        doc = {"user": {}}
        set_pointer(doc, "/user/name", "Ada")
        assert doc == {"user": {"name": "Ada"}}

    def test_append_to_array(self):
        doc = {"items": [1]}
        set_pointer(doc, "/items/-", 2)
        set_pointer(doc, "/items/2", 3)
        assert doc["items"] == [1, 2, 3]

    def test_replace_array_element(self):
        doc = {"items": [1, 2]}
        set_pointer(doc, "/items/0", 9)
        assert doc["items"] == [9, 2]

    def test_missing_parent_raises(self):
        with pytest.raises(PointerError):
            set_pointer({}, "/user/name", "Ada")

    def test_bad_array_index_raises(self):
        doc = {"items": [1]}
        with pytest.raises(PointerError):
            set_pointer(doc, "/items/5", 2)
        with pytest.raises(PointerError):
            set_pointer(doc, "/items/x", 2)
        assert doc == {"items": [1]}

    def test_scalar_parent_raises(self):
        with pytest.raises(PointerError):
            set_pointer({"a": 1}, "/a/b", 2)

    def test_root_pointer_returns_value(self):
        assert set_pointer({"a": 1}, "", {"b": 2}) == {"b": 2}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
