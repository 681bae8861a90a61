"""SQLAlchemy models registry for the local finance database."""

from .finance import Base, FfBill, FfSetting, FfTransaction

__all__ = [
    "Base",
    "FfTransaction",
    "FfBill",
    "FfSetting",
]
