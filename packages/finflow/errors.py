"""Exception types raised outside the parsing core."""

from __future__ import annotations


class IngestError(ValueError):
    """A message backup could not be read or has an unsupported shape."""


class NotFoundError(LookupError):
    """No stored record exists for the given id."""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} not found: {record_id!r}")
        self.kind = kind
        self.record_id = record_id


__all__ = ["IngestError", "NotFoundError"]
