"""Tests for Pointsman models."""

import uuid

import pytest
from django.contrib import admin
from django.db import IntegrityError, transaction

from pointsman.models import LoyaltyAccount, LoyaltyTransaction, TransactionType


pytestmark = pytest.mark.django_db


class TestLoyaltyAccount:
    def test_defaults(self, account):
        assert account.total_points == 0
        assert account.available_points == 0
        assert account.lifetime_points == 0
        assert account.tier == "bronze"
        assert isinstance(account.id, uuid.UUID)

    def test_str(self, account, member_id):
        assert str(account) == f"{member_id}: 0pts | bronze"

    def test_member_unique(self, account, member_id):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                LoyaltyAccount.objects.create(member_id=member_id)

    def test_available_points_never_negative(self, account):
        account.available_points = -1
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                account.save()

    def test_tier_accepts_configured_names(self, account):
        """Tier names come from the loyalty program, not a fixed list."""
        account.tier = "vip"
        account.full_clean()
        account.save()
        account.refresh_from_db()
        assert account.tier == "vip"


class TestLoyaltyTransaction:
    def test_str(self, account):
        tx = LoyaltyTransaction.objects.create(
            account=account,
            transaction_type=TransactionType.EARN,
            points=250,
            balance_after=250,
            description="Chalet booking",
        )
        assert str(tx) == "+250pts — Chalet booking"
        assert tx.is_credit is True

    def test_str_negative(self, account):
        tx = LoyaltyTransaction(
            account=account,
            transaction_type=TransactionType.REDEEM,
            points=-40,
            balance_after=0,
            description="Spa voucher",
        )
        assert str(tx) == "-40pts — Spa voucher"
        assert tx.is_credit is False

    def test_source_expires_once(self, account, make_stale_earn):
        source = make_stale_earn(account, points=100)
        LoyaltyTransaction.objects.create(
            account=account,
            transaction_type=TransactionType.EXPIRE,
            points=-100,
            balance_after=0,
            description="Expired",
            source=source,
        )
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                LoyaltyTransaction.objects.create(
                    account=account,
                    transaction_type=TransactionType.EXPIRE,
                    points=-100,
                    balance_after=0,
                    description="Expired again",
                    source=source,
                )


class TestAdmin:
    def test_models_registered(self):
        assert admin.site.is_registered(LoyaltyAccount)
        assert admin.site.is_registered(LoyaltyTransaction)

    def test_ledger_is_read_only(self, rf):
        model_admin = admin.site._registry[LoyaltyTransaction]
        request = rf.get("/")
        assert model_admin.has_add_permission(request) is False
        assert model_admin.has_change_permission(request) is False
        assert model_admin.has_delete_permission(request) is False

    def test_tier_badge_for_configured_tier(self, account):
        account.tier = "vip_plus"
        badge = admin.site._registry[LoyaltyAccount].tier_badge(account)
        assert "Vip Plus" in badge
        assert "#6c757d" in badge
