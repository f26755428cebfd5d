"""
Loyalty program tables: tiers, multipliers, and conversion rates.

A LoyaltyProgram is immutable configuration handed to LoyaltyService at
construction. The default schedule can be overridden per deployment
through settings.POINTSMAN["TIERS"], or per instance in tests.
"""

from dataclasses import dataclass, field
from decimal import ROUND_FLOOR, Decimal, InvalidOperation


@dataclass(frozen=True)
class TierConfig:
    """One row of the tier table."""

    tier: str
    min_points: int
    multiplier: Decimal
    benefits: tuple[str, ...] = ()

    def as_dict(self) -> dict:
        return {
            "tier": self.tier,
            "min_points": self.min_points,
            "multiplier": self.multiplier,
            "benefits": list(self.benefits),
        }


DEFAULT_TIERS = (
    TierConfig(
        "bronze", 0, Decimal("1.0"),
        ("Basic member discounts",),
    ),
    TierConfig(
        "silver", 1000, Decimal("1.25"),
        ("5% extra on orders", "Priority support"),
    ),
    TierConfig(
        "gold", 5000, Decimal("1.5"),
        ("10% extra on orders", "Free upgrades", "Early access"),
    ),
    TierConfig(
        "platinum", 15000, Decimal("2.0"),
        ("15% extra on orders", "VIP support", "Exclusive events"),
    ),
)


def _floor(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


@dataclass(frozen=True)
class LoyaltyProgram:
    """
    Static rules of a loyalty program.

    Tiers are kept sorted by min_points; the first tier must start at 0 so
    every lifetime balance maps to a tier.
    """

    tiers: tuple[TierConfig, ...] = DEFAULT_TIERS
    points_per_unit: int = 10
    expiration_days: int = 365
    tier_duration_days: int = 365
    points_per_currency_unit: int = 100
    max_transactions_limit: int = 1000
    _by_name: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        tiers = tuple(sorted(self.tiers, key=lambda t: t.min_points))
        if not tiers:
            raise ValueError("A loyalty program needs at least one tier")
        if tiers[0].min_points != 0:
            raise ValueError("The lowest tier must start at 0 points")
        names = [str(t.tier) for t in tiers]
        if len(set(names)) != len(names):
            raise ValueError("Tier names must be unique")
        thresholds = [t.min_points for t in tiers]
        if len(set(thresholds)) != len(thresholds):
            raise ValueError("Tier thresholds must be unique")
        object.__setattr__(self, "tiers", tiers)
        object.__setattr__(self, "_by_name", {str(t.tier): t for t in tiers})

    @classmethod
    def from_settings(cls) -> "LoyaltyProgram":
        """Build the program from settings.POINTSMAN."""
        from pointsman.conf import get_pointsman_settings

        conf = get_pointsman_settings()
        tiers = DEFAULT_TIERS
        if conf.TIERS:
            tiers = tuple(
                TierConfig(
                    tier=row["tier"],
                    min_points=int(row["min_points"]),
                    multiplier=Decimal(str(row.get("multiplier", "1"))),
                    benefits=tuple(row.get("benefits", ())),
                )
                for row in conf.TIERS
            )
        return cls(
            tiers=tiers,
            points_per_unit=conf.POINTS_PER_UNIT,
            expiration_days=conf.POINTS_EXPIRATION_DAYS,
            tier_duration_days=conf.TIER_DURATION_DAYS,
            points_per_currency_unit=conf.POINTS_PER_CURRENCY_UNIT,
            max_transactions_limit=conf.MAX_TRANSACTIONS_LIMIT,
        )

    # ------------------------------------------------------------------
    # Tier lookups
    # ------------------------------------------------------------------

    @property
    def lowest_tier(self) -> str:
        return self.tiers[0].tier

    def tier_names(self) -> list[str]:
        return [str(t.tier) for t in self.tiers]

    def get_tier(self, tier: str | None) -> TierConfig:
        """Config for tier; unknown or missing tiers fall back to the lowest."""
        return self._by_name.get(str(tier), self.tiers[0])

    def rank(self, tier: str) -> int:
        """Position of tier in the ordered table (-1 if unknown)."""
        names = self.tier_names()
        tier = str(tier)
        return names.index(tier) if tier in names else -1

    def tier_for_points(self, lifetime_points: int) -> str:
        """Highest tier whose threshold is reached."""
        for config in reversed(self.tiers):
            if lifetime_points >= config.min_points:
                return config.tier
        return self.lowest_tier

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    def points_for_purchase(self, amount, tier: str | None = None) -> int:
        """
        Points earned for a purchase.

        floor(floor(amount * points_per_unit) * multiplier). Decimal math
        keeps amounts like 19.99 exact. Amounts that are not a positive
        finite number earn nothing.
        """
        if isinstance(amount, bool):
            return 0
        try:
            amount = Decimal(str(amount))
        except InvalidOperation:
            return 0
        if not amount.is_finite() or amount <= 0:
            return 0
        base_points = _floor(amount * self.points_per_unit)
        return _floor(base_points * self.get_tier(tier).multiplier)

    def redemption_value(self, points: int) -> int:
        """Whole currency units a points balance is worth."""
        return points // self.points_per_currency_unit
