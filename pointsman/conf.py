"""
Pointsman configuration.

Usage in settings.py:
    POINTSMAN = {
        "POINTS_PER_UNIT": 10,
        "POINTS_EXPIRATION_DAYS": 365,
        "TIERS": [
            {"tier": "bronze", "min_points": 0, "multiplier": "1.0"},
            {"tier": "silver", "min_points": 1000, "multiplier": "1.25"},
            ...
        ],
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class PointsmanSettings:
    """Pointsman configuration settings."""

    # Points earned per currency unit spent (before tier multiplier)
    POINTS_PER_UNIT: int = 10

    # Lifetime of earned and bonus points
    POINTS_EXPIRATION_DAYS: int = 365

    # How long an upgraded tier is advertised as valid
    TIER_DURATION_DAYS: int = 365

    # Points needed for one currency unit of redemption value
    POINTS_PER_CURRENCY_UNIT: int = 100

    # Upper bound for transaction history queries
    MAX_TRANSACTIONS_LIMIT: int = 1000

    # Tier table override (list of dicts); None uses the default schedule
    TIERS: list[dict] | None = None

    # Persistence collaborator implementing protocols.LedgerStore
    STORE_BACKEND: str = "pointsman.adapters.django_store.DjangoLedgerStore"


def get_pointsman_settings() -> PointsmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "POINTSMAN", {})
    return PointsmanSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_pointsman_settings(), name)


pointsman_settings = _LazySettings()
