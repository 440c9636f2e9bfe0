"""Declarative rule configuration for the economy and battle engine."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class EconomyRules:
    """Accrual and seed-state constants."""

    seconds_per_hour: int = 3600
    collection_cooldown_seconds: int = 300
    starting_gold: int = 1000
    starting_food: int = 500
    starting_wood: int = 300
    starting_stone: int = 200
    starting_swordsmen: int = 10
    starting_archers: int = 5
    default_username: str = "Kingdom"


@dataclass(frozen=True, slots=True)
class BattleRules:
    """Randomization band, loss and loot coefficients."""

    random_factor_min: float = 0.8
    random_factor_max: float = 1.2
    min_defense_power: float = 1.0
    # victory: attacker loses base + scale / ratio, defender base + scale / ratio
    victory_attacker_loss_base: float = 0.1
    victory_attacker_loss_scale: float = 0.2
    victory_defender_loss_base: float = 0.3
    victory_defender_loss_scale: float = 0.3
    # defeat: both sides scale with the adjusted ratio
    defeat_attacker_loss_base: float = 0.3
    defeat_attacker_loss_scale: float = 0.3
    defeat_defender_loss_base: float = 0.1
    defeat_defender_loss_scale: float = 0.1
    steal_base: float = 0.2
    steal_scale: float = 0.1
    clamp_loss_fractions: bool = True


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Top-level rule bundle."""

    economy: EconomyRules = field(default_factory=EconomyRules)
    battle: BattleRules = field(default_factory=BattleRules)


DEFAULT_RULES = RulesConfig()
