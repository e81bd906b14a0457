"""
Prompt-to-surface generation.

An external (usually LLM-backed) generator turns a prompt into a
surfaceUpdate-shaped object. Generated output is normalized and validated
here before it is applied to a surface.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

from pydantic import ValidationError

from .errors import GenerationError
from .protocol.messages import ComponentDefinition, SurfaceUpdateMessage

logger = logging.getLogger(__name__)


class ComponentTreeGenerator(Protocol):
    """Generates a surfaceUpdate-shaped object for a prompt"""

    async def generate(self, prompt: str, surface_id: str) -> Mapping[str, Any] | str:
        ...


def convert_legacy_component(raw: Mapping[str, Any]) -> dict[str, Any]:
    """
    Convert ``{id, type, props, children}`` into the wire component shape.

    Components already in wire shape are returned unchanged.
    """
    if "component" in raw or "type" not in raw:
        return dict(raw)

    props = dict(raw.get("props") or {})
    children = raw.get("children")
    if children:
        props.setdefault("explicitList", list(children))

    converted: dict[str, Any] = {"id": raw.get("id"), "component": {raw["type"]: props}}
    if raw.get("template") is not None:
        converted["template"] = raw["template"]
    return converted


def _unwrap(raw: Mapping[str, Any] | str) -> dict[str, Any]:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise GenerationError(f"Generator returned invalid JSON: {e}")
    if not isinstance(raw, Mapping):
        raise GenerationError("Generator result must be an object")

    if "type" not in raw and isinstance(raw.get("surfaceUpdate"), Mapping):
        return {**raw["surfaceUpdate"], "type": "surfaceUpdate"}
    return dict(raw)


def normalize_generated_surface(raw: Mapping[str, Any] | str, surface_id: str) -> SurfaceUpdateMessage:
    """
    Validate a generator result as a surfaceUpdate for ``surface_id``.

    Rules:
    - the result is a surfaceUpdate for the requested surface (a missing
      surfaceId is filled in)
    - every component is a valid definition (legacy shapes are converted)
    - an explicit root must be one of the components; without one, the
      first component becomes root

    Raises:
        GenerationError: If any rule is violated
    """
    body = _unwrap(raw)

    msg_type = body.get("type", "surfaceUpdate")
    if msg_type != "surfaceUpdate":
        raise GenerationError(f"Expected surfaceUpdate, got {msg_type!r}")

    target = body.get("surfaceId") or surface_id
    if target != surface_id:
        raise GenerationError(f"Generated surface {target!r} does not match {surface_id!r}")

    raw_components = body.get("components") or []
    if not isinstance(raw_components, list):
        raise GenerationError("'components' must be an array")

    components = []
    for index, item in enumerate(raw_components):
        if not isinstance(item, Mapping):
            raise GenerationError(f"Component {index} is not an object")
        wire = convert_legacy_component(item)
        try:
            ComponentDefinition.model_validate(wire)
        except ValidationError as e:
            first = e.errors()[0]["msg"] if e.errors() else str(e)
            raise GenerationError(f"Component {index} is invalid: {first}")
        components.append(wire)

    ids = [component["id"] for component in components]
    root = body.get("root")
    if root:
        if root not in ids:
            raise GenerationError(f"Root {root!r} is not among the generated components")
    elif ids:
        root = ids[0]
        logger.debug(f"Inferred root {root} for generated surface {surface_id}")
    else:
        raise GenerationError("Generated surface has no components and no root")

    return SurfaceUpdateMessage(surfaceId=surface_id, components=components, root=root)


async def generate_surface(
    generator: ComponentTreeGenerator,
    prompt: str,
    surface_id: str,
) -> SurfaceUpdateMessage:
    """
    Ask a generator for a surface and normalize its result.

    Raises:
        GenerationError: If the generator fails or its output is invalid
    """
    try:
        raw = await generator.generate(prompt, surface_id)
    except GenerationError:
        raise
    except Exception as e:
        logger.error(f"Surface generation failed for {surface_id}: {e}")
        raise GenerationError(f"Generator failed: {e}") from e
    return normalize_generated_surface(raw, surface_id)


__all__ = [
    "ComponentTreeGenerator",
    "convert_legacy_component",
    "normalize_generated_surface",
    "generate_surface",
]
