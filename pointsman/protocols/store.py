"""Ledger store protocol: persistence collaborator of LoyaltyService."""

from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pointsman.models import LoyaltyAccount, LoyaltyTransaction


@dataclass(frozen=True)
class LoyaltyStats:
    """Program-wide aggregates."""

    total_accounts: int
    total_points_issued: int
    total_points_redeemed: int
    accounts_by_tier: dict[str, int] = field(default_factory=dict)


@runtime_checkable
class LedgerStore(Protocol):
    """
    Protocol for loyalty account and transaction persistence.

    Implemented by adapters/django_store.py.

    Configuration in settings.py:
        POINTSMAN = {
            "STORE_BACKEND": "pointsman.adapters.django_store.DjangoLedgerStore",
        }

    Mutations are wrapped by LoyaltyService in ``atomic()`` and the account
    is read with ``for_update=True``; implementations must serialize
    concurrent writers of the same account inside that block.
    """

    def atomic(self) -> AbstractContextManager:
        """Unit of work: everything inside commits or rolls back together."""
        ...

    def get_account_by_member_id(
        self,
        member_id: str,
        for_update: bool = False,
    ) -> "LoyaltyAccount | None":
        """Return the member's account, locked when for_update is set."""
        ...

    def get_account_by_id(self, account_id: str) -> "LoyaltyAccount | None":
        ...

    def create_account(self, member_id: str, tier: str) -> "LoyaltyAccount":
        """Open an empty account starting at tier."""
        ...

    def update_account(self, account: "LoyaltyAccount", **fields) -> "LoyaltyAccount":
        """Persist the given fields on account and return it."""
        ...

    def add_transaction(self, account: "LoyaltyAccount", **fields) -> "LoyaltyTransaction":
        """Append a transaction to account's ledger."""
        ...

    def get_transactions(
        self,
        account: "LoyaltyAccount",
        limit: int | None = None,
    ) -> list["LoyaltyTransaction"]:
        """Return transactions, most recent first."""
        ...

    def get_expiring_points(
        self,
        account: "LoyaltyAccount",
        as_of: datetime,
    ) -> list["LoyaltyTransaction"]:
        """
        Return earn/bonus transactions due at as_of that were not expired yet.

        Ordered oldest first.
        """
        ...

    def list_accounts(self) -> Iterable["LoyaltyAccount"]:
        ...

    def list_accounts_with_expiring_points(
        self,
        as_of: datetime,
    ) -> Iterable["LoyaltyAccount"]:
        """Accounts holding at least one transaction get_expiring_points would return."""
        ...
