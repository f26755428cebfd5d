"""Django ORM implementation of the LedgerStore protocol."""

from __future__ import annotations

from datetime import datetime

from django.db import transaction

from pointsman.models import (
    EXPIRING_TYPES,
    LoyaltyAccount,
    LoyaltyTransaction,
)


class DjangoLedgerStore:
    """Adapter: loyalty ledger persisted through the Django ORM."""

    def atomic(self):
        return transaction.atomic()

    def get_account_by_member_id(
        self,
        member_id,
        for_update: bool = False,
    ) -> LoyaltyAccount | None:
        qs = LoyaltyAccount.objects.all()
        if for_update:
            # Row lock: MUST be called inside atomic()
            qs = qs.select_for_update()
        return qs.filter(member_id=member_id).first()

    def get_account_by_id(self, account_id) -> LoyaltyAccount | None:
        return LoyaltyAccount.objects.filter(pk=account_id).first()

    def create_account(self, member_id, tier: str) -> LoyaltyAccount:
        return LoyaltyAccount.objects.create(member_id=member_id, tier=tier)

    def update_account(self, account: LoyaltyAccount, **fields) -> LoyaltyAccount:
        for name, value in fields.items():
            setattr(account, name, value)
        account.save(update_fields=[*fields, "updated_at"])
        return account

    def add_transaction(self, account: LoyaltyAccount, **fields) -> LoyaltyTransaction:
        return LoyaltyTransaction.objects.create(account=account, **fields)

    def get_transactions(
        self,
        account: LoyaltyAccount,
        limit: int | None = None,
    ) -> list[LoyaltyTransaction]:
        qs = LoyaltyTransaction.objects.filter(account=account).order_by("-created_at")
        if limit is not None:
            qs = qs[:limit]
        return list(qs)

    def get_expiring_points(
        self,
        account: LoyaltyAccount,
        as_of: datetime,
    ) -> list[LoyaltyTransaction]:
        return list(
            LoyaltyTransaction.objects.filter(
                account=account,
                transaction_type__in=EXPIRING_TYPES,
                points__gt=0,
                expires_at__lte=as_of,
                expiration__isnull=True,
            ).order_by("expires_at", "created_at")
        )

    def list_accounts(self) -> list[LoyaltyAccount]:
        return list(LoyaltyAccount.objects.order_by("created_at"))

    def list_accounts_with_expiring_points(self, as_of: datetime) -> list[LoyaltyAccount]:
        return list(
            LoyaltyAccount.objects.filter(
                transactions__transaction_type__in=EXPIRING_TYPES,
                transactions__points__gt=0,
                transactions__expires_at__lte=as_of,
                transactions__expiration__isnull=True,
            )
            .distinct()
            .order_by("created_at")
        )
