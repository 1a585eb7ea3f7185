"""Opaque host-managed state blob.

The connector keeps nothing between invocations except what the host
stores for it. The blob is JSON and has no meaning to the connector
beyond round-tripping; LibriVox needs no session or auth state, so it
is normally an empty object.
"""

import json
from typing import Any

from loguru import logger

log = logger.bind(stage="state")


def save_state(state: dict[str, Any] | None = None) -> str:
    """Encode ``state`` as a JSON object. Anything but a dict is rejected,
    since ``restore_state`` would discard it."""
    if state is None:
        return "{}"
    if not isinstance(state, dict):
        log.error(f"Refusing to save state of type {type(state).__name__}")
        raise TypeError(f"state must be a dict, not {type(state).__name__}")
    return json.dumps(state)


def restore_state(blob: str | None) -> dict[str, Any]:
    """Decode a blob from ``save_state``. Empty or unreadable blobs give {}."""
    if not blob:
        return {}
    try:
        data = json.loads(blob)
    except json.JSONDecodeError as exc:
        log.warning(f"Discarding unreadable saved state: {exc}")
        return {}
    if not isinstance(data, dict):
        log.warning(f"Discarding saved state of type {type(data).__name__}")
        return {}
    return data
