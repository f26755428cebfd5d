"""
Django Pointsman - Loyalty points ledger.

Usage:
    from pointsman import LoyaltyService, LoyaltyError

    service = LoyaltyService()
    tx = service.earn_points(member_id, Decimal("100.00"), "order", order_id)
    service.redeem_points(member_id, 500, description="Room upgrade")
    balance = service.get_balance(member_id)
"""


def __getattr__(name):
    if name == "LoyaltyService":
        from pointsman.service import LoyaltyService

        return LoyaltyService
    if name == "LoyaltyProgram":
        from pointsman.program import LoyaltyProgram

        return LoyaltyProgram
    if name == "LoyaltyError":
        from pointsman.exceptions import LoyaltyError

        return LoyaltyError
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["LoyaltyService", "LoyaltyProgram", "LoyaltyError"]
__version__ = "0.1.0"
