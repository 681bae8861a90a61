"""Adapter for JSON message backups.

Accepted shapes:
- a top-level array of message objects;
- an object with a ``messages`` array.

Each object provides ``content`` and optionally ``id``, ``sender`` and
``timestamp`` (ISO-8601 or epoch milliseconds). Entries that fail validation
are skipped with a warning; ids missing from the file become ``json_<n>``.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

from pydantic import ValidationError

from ...errors import IngestError
from ...logging_setup import get_logger
from ...models import MessageIn, RawMessage
from ..timestamps import normalize_timestamp

_logger = get_logger("finflow.ingest.json")


def _entries(payload: Any) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("messages"), list):
        return payload["messages"]
    raise IngestError(
        "Unsupported JSON layout: expected an array of messages or an object "
        "with a 'messages' array. Please check file format."
    )


def to_raw_messages(payload: Any, *, now: str) -> Iterator[RawMessage]:
    """Yield ``RawMessage`` records from a decoded JSON document."""

    for idx, entry in enumerate(_entries(payload)):
        try:
            msg = MessageIn.model_validate(entry)
        except ValidationError as exc:
            _logger.warning("skipping JSON message #%d: %s", idx, exc.errors()[0]["msg"])
            continue
        yield RawMessage(
            id=msg.id or f"json_{idx}",
            content=msg.content,
            sender=msg.sender,
            timestamp=normalize_timestamp(msg.timestamp, fallback=now),
        )


def read_json_messages(text: str, *, now: str) -> list[RawMessage]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise IngestError(f"Invalid JSON ({exc.msg}). Please check file format.") from exc
    return list(to_raw_messages(payload, now=now))


__all__ = ["to_raw_messages", "read_json_messages"]
