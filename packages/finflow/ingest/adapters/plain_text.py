"""Adapter for plain-text message dumps: one message per non-blank line."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from ...models import RawMessage

TEXT_SENDER = "Imported"


def to_raw_messages(lines: Iterable[str], *, now: str) -> Iterator[RawMessage]:
    """Yield one message per non-blank line, numbered by position in the file."""

    for idx, line in enumerate(lines):
        content = line.strip()
        if not content:
            continue
        yield RawMessage(id=f"text_{idx}", content=content, sender=TEXT_SENDER, timestamp=now)


__all__ = ["TEXT_SENDER", "to_raw_messages"]
