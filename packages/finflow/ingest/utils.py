"""Ingest utilities shared by CLI commands.

``load_messages`` picks an adapter by file suffix:

- ``.json``: :mod:`.adapters.json_backup`
- ``.xml``: :mod:`.adapters.xml_backup`
- anything else: :mod:`.adapters.plain_text`
"""

from __future__ import annotations

from collections.abc import Iterable
from os import PathLike
from pathlib import Path

from ..errors import IngestError
from ..logging_setup import get_logger
from ..models import RawMessage
from .timestamps import now_iso

_logger = get_logger("finflow.ingest")

BANK_CONTENT_KEYWORDS: tuple[str, ...] = ("rs", "₹", "debit", "credit", "bank")


def load_messages(path: str | PathLike[str], *, now: str | None = None) -> list[RawMessage]:
    """Read a message backup and return its messages in file order.

    Parameters
    ----------
    path:
        Backup file. The suffix (case-insensitive) selects the format.
    now:
        ISO-8601 timestamp used where the file carries none. Defaults to the
        current UTC time.

    Raises
    ------
    IngestError
        When the file cannot be read or decoded.
    """

    from .adapters.json_backup import read_json_messages
    from .adapters.plain_text import to_raw_messages as text_to_raw
    from .adapters.xml_backup import read_xml_messages

    p = Path(path)
    stamp = now or now_iso()
    try:
        text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise IngestError(f"Could not read {p}: {exc}. Please check file format.") from exc

    suffix = p.suffix.lower()
    if suffix == ".json":
        messages = read_json_messages(text, now=stamp)
    elif suffix == ".xml":
        messages = read_xml_messages(text, now=stamp)
    else:
        messages = list(text_to_raw(text.splitlines(), now=stamp))

    _logger.info("loaded %d messages from %s", len(messages), p.name)
    return messages


def is_bank_message(message: RawMessage) -> bool:
    body = message.content.lower()
    return any(k in body for k in BANK_CONTENT_KEYWORDS) or "bank" in message.sender.lower()


def filter_bank_messages(messages: Iterable[RawMessage]) -> list[RawMessage]:
    """Keep messages that look bank-originated, preserving order."""

    return [m for m in messages if is_bank_message(m)]


__all__ = ["BANK_CONTENT_KEYWORDS", "load_messages", "is_bank_message", "filter_bank_messages"]
