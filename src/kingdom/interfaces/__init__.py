"""Protocol-based interfaces for kingdom collaborators.

Services depend on these protocols only, so tests can inject in-memory or
failing fakes instead of mocking a database client.
"""

from kingdom.interfaces.sources import Clock, RandomSource
from kingdom.interfaces.store import IKingdomStore

__all__ = [
    "Clock",
    "IKingdomStore",
    "RandomSource",
]
