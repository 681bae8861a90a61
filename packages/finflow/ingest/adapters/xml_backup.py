"""Adapter for XML message backups (Android "SMS Backup" style).

Every ``<sms>`` element anywhere in the document is one message::

    <sms body="..." address="VK-HDFCBK" date="1735689600000" />

``date`` is epoch milliseconds. Missing ``address`` becomes ``"Unknown"``;
elements without a ``body`` are skipped. Ids are ``imported_<n>`` by
position among all ``<sms>`` elements.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterator

from ...errors import IngestError
from ...models import RawMessage
from ..timestamps import epoch_ms_to_iso


def to_raw_messages(root: ET.Element, *, now: str) -> Iterator[RawMessage]:
    for idx, el in enumerate(root.iter("sms")):
        body = el.get("body")
        if not body:
            continue
        yield RawMessage(
            id=f"imported_{idx}",
            content=body,
            sender=el.get("address") or "Unknown",
            timestamp=epoch_ms_to_iso(el.get("date"), fallback=now),
        )


def read_xml_messages(text: str, *, now: str) -> list[RawMessage]:
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise IngestError(f"Invalid XML ({exc}). Please check file format.") from exc
    return list(to_raw_messages(root, now=now))


__all__ = ["to_raw_messages", "read_xml_messages"]
