"""War report row for the SQL State Store.

Reports are append-only; nothing in the engine updates or deletes them.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class WarReportRow(Base):
    """Immutable record of one resolved attack.

    Attributes:
        id: Report id generated by the resolver
        attacker_id: Attacking kingdom
        defender_id: Defending kingdom
        victory: Whether the attacker won
        attack_power / defense_power: Powers compared
        ratio / random_factor / adjusted_ratio: Outcome inputs
        attacker_army / defender_army: Pre-battle armies (JSON)
        attacker_losses / defender_losses: Troops lost per kind (JSON)
        resources_stolen: Loot per resource kind (JSON)
        used_fallback_opponent: Resolved against a stand-in defender
        created_at: When the attack was resolved
    """

    __tablename__ = "war_reports"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    attacker_id: Mapped[str] = mapped_column(String(64), nullable=False)
    defender_id: Mapped[str] = mapped_column(String(64), nullable=False)
    attacker_name: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    defender_name: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    victory: Mapped[bool] = mapped_column(Boolean, nullable=False)
    attack_power: Mapped[float] = mapped_column(Float, nullable=False)
    defense_power: Mapped[float] = mapped_column(Float, nullable=False)
    ratio: Mapped[float] = mapped_column(Float, nullable=False)
    random_factor: Mapped[float] = mapped_column(Float, nullable=False)
    adjusted_ratio: Mapped[float] = mapped_column(Float, nullable=False)
    attacker_army: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    defender_army: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    attacker_losses: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    defender_losses: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    resources_stolen: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    used_fallback_opponent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    __table_args__ = (
        Index("idx_war_reports_attacker", "attacker_id", "created_at"),
        Index("idx_war_reports_defender", "defender_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<WarReportRow(id='{self.id}', attacker='{self.attacker_id}', "
            f"defender='{self.defender_id}', victory={self.victory})>"
        )
