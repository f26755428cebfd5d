"""Pointsman models.

- LoyaltyAccount: per-member balances and tier
- LoyaltyTransaction: append-only ledger of every balance movement
"""

from pointsman.models.account import LoyaltyAccount, LoyaltyTier
from pointsman.models.transaction import (
    EXPIRING_TYPES,
    LoyaltyTransaction,
    TransactionType,
)

__all__ = [
    "LoyaltyAccount",
    "LoyaltyTier",
    "LoyaltyTransaction",
    "TransactionType",
    "EXPIRING_TYPES",
]
