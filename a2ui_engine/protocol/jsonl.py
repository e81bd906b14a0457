"""
JSONL framing for A2UI streams.

Agents stream one protocol message per line; some also embed messages in
free text between ``---a2ui_JSON---`` delimiters.
"""
from __future__ import annotations

import json
import logging
import re

from ..errors import InvalidMessageError
from .messages import INBOUND_MESSAGE_TYPES, A2UIMessage, parse_message

logger = logging.getLogger(__name__)

A2UI_DELIMITER = "---a2ui_JSON---"

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


def validate_a2ui_jsonl(jsonl: str) -> tuple[bool, list[str]]:
    """
    Validate A2UI JSONL.

    Rules:
    - Each non-blank line must be valid JSON
    - Each line must be one inbound protocol message
    - Each message must pass model validation

    Args:
        jsonl: JSONL string to validate

    Returns:
        Tuple of (is_valid, errors)
    """
    errors = []

    for i, line in enumerate(jsonl.strip().split('\n'), 1):
        if not line.strip():
            continue

        try:
            message = parse_message(line)
        except InvalidMessageError as e:
            problems = e.details.get("errors")
            suffix = f" ({'; '.join(problems)})" if problems else ""
            errors.append(f"Line {i}: {e}{suffix}")
            continue

        if message.type not in INBOUND_MESSAGE_TYPES:
            errors.append(f"Line {i}: '{message.type}' is not an agent-to-client message")

    return (len(errors) == 0, errors)


def parse_a2ui_jsonl(jsonl: str) -> list[A2UIMessage]:
    """
    Parse every valid line of a JSONL stream; invalid lines are logged and skipped.
    """
    messages = []
    for i, line in enumerate(jsonl.splitlines(), 1):
        if not line.strip():
            continue
        try:
            messages.append(parse_message(line))
        except InvalidMessageError as e:
            logger.warning(f"Skipping line {i}: {e}")
    return messages


def extract_a2ui_messages(text: str) -> list[A2UIMessage]:
    """
    Extract A2UI messages from text with ---a2ui_JSON--- delimiters.
    """
    messages = []

    for part in text.split(A2UI_DELIMITER):
        part = _CODE_FENCE_RE.sub("", part.strip())
        if not part:
            continue
        match = _JSON_OBJECT_RE.search(part)
        if not match:
            continue
        try:
            messages.append(parse_message(match.group()))
        except InvalidMessageError as e:
            logger.warning(f"Failed to parse A2UI JSON: {e}")

    return messages


__all__ = [
    "A2UI_DELIMITER",
    "validate_a2ui_jsonl",
    "parse_a2ui_jsonl",
    "extract_a2ui_messages",
]
