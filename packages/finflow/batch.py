"""Batch parsing of imported messages.

``parse_sms_transaction`` is pure, so a batch can be mapped over a thread pool
without coordination. Output order always matches input order.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

from .logging_setup import get_logger
from .models import ParsedMessage, RawMessage
from .sms_parser import parse_sms_transaction

_logger = get_logger("finflow.batch")

_MAX_WORKERS_CAP = 32


def resolve_max_workers(n_items: int, override: int | None = None) -> int:
    """Resolve a worker count for ``n_items`` messages.

    ``override`` wins over the ``FINFLOW_PARSE_MAX_WORKERS`` env var. The
    result is capped to ``n_items`` and 32 and is at least 1.
    """

    requested = override
    if requested is None:
        env_val = os.getenv("FINFLOW_PARSE_MAX_WORKERS")
        try:
            requested = int(env_val) if env_val else None
        except ValueError:
            _logger.warning("ignoring invalid FINFLOW_PARSE_MAX_WORKERS=%r", env_val)
            requested = None

    if requested is not None and requested > 0:
        return max(1, min(requested, n_items, _MAX_WORKERS_CAP))
    return max(1, min(8, n_items))


def _parse_one(message: RawMessage) -> ParsedMessage:
    return ParsedMessage(
        message=message,
        candidate=parse_sms_transaction(message.content, message.sender),
    )


def parse_messages(
    messages: Iterable[RawMessage], *, max_workers: int | None = None
) -> list[ParsedMessage]:
    """Parse every message, returning results in input order."""

    items = list(messages)
    if not items:
        return []

    workers = resolve_max_workers(len(items), max_workers)
    if workers == 1:
        results = [_parse_one(m) for m in items]
    else:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ff-parse") as ex:
            results = list(ex.map(_parse_one, items))

    found = sum(1 for r in results if r.candidate is not None)
    _logger.info("parsed %d messages, %d transactions detected", len(results), found)
    return results


def candidates_only(results: Iterable[ParsedMessage]) -> list[ParsedMessage]:
    """Drop messages with no detected transaction."""

    return [r for r in results if r.candidate is not None]


__all__ = ["resolve_max_workers", "parse_messages", "candidates_only"]
