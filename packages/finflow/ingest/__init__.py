"""Message-backup ingestion (JSON, XML and plain text)."""

from .utils import filter_bank_messages, is_bank_message, load_messages

__all__ = ["load_messages", "filter_bank_messages", "is_bank_message"]
