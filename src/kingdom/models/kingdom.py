"""Kingdom row for the SQL State Store.

Resources, buildings and army are stored as JSON documents so partially
formed rows written by older clients stay readable; the store decodes them
through the normalization step.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class KingdomRow(Base, TimestampMixin):
    """One kingdom per player.

    Attributes:
        id: Player id issued by the identity provider
        kingdom_name: Display name
        resources: JSON object {gold, food, wood, stone}
        buildings: JSON object {kind: {level, <effect fields>}}
        army: JSON object {troop kind: count}
        last_resource_collection: Timestamp of the last accrual settlement
        revision: Compare-and-swap token, bumped on every write
    """

    __tablename__ = "kingdoms"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    kingdom_name: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    resources: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    buildings: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    army: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    last_resource_collection: Mapped[datetime] = mapped_column(nullable=False)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<KingdomRow(id='{self.id}', name='{self.kingdom_name}', revision={self.revision})>"
