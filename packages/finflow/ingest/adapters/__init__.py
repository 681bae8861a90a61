"""Format-specific readers turning message backups into ``RawMessage`` records."""
