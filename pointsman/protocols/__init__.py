"""Pointsman protocols."""

from pointsman.protocols.store import LedgerStore, LoyaltyStats

__all__ = [
    "LedgerStore",
    "LoyaltyStats",
]
