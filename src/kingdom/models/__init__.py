"""SQLAlchemy models for the kingdom State Store."""

from .base import Base, TimestampMixin
from .kingdom import KingdomRow
from .war_report import WarReportRow

__all__ = [
    "Base",
    "KingdomRow",
    "TimestampMixin",
    "WarReportRow",
]
