"""Runtime primitives backing the kingdom HTTP API."""

from __future__ import annotations

import logging

from kingdom.config import Settings, get_settings
from kingdom.domain.rules_config import DEFAULT_RULES, RulesConfig
from kingdom.factory import build_services
from kingdom.interfaces import Clock, IKingdomStore
from kingdom.utils.clock import utc_now

logger = logging.getLogger(__name__)


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        rules: RulesConfig = DEFAULT_RULES,
        store: IKingdomStore | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.settings = settings or get_settings()
        self.rules = rules
        self._services = build_services(self.settings, store=store, rules=rules, clock=clock)
        self.store = self._services.store
        self.kingdoms = self._services.kingdoms
        self.attacks = self._services.attacks

    def store_healthy(self) -> bool:
        return self._services.store_healthy()

    async def shutdown(self) -> None:
        self._services.close()
        logger.info("kingdom API state shut down")


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
