"""Pytest fixtures for Pointsman tests."""

import uuid
from datetime import timedelta

import pytest
from django.utils import timezone

from pointsman.models import LoyaltyAccount, LoyaltyTransaction, TransactionType
from pointsman.service import LoyaltyService


@pytest.fixture
def service():
    """LoyaltyService built from test settings."""
    return LoyaltyService()


@pytest.fixture
def member_id():
    return str(uuid.uuid4())


@pytest.fixture
def other_member_id():
    return str(uuid.uuid4())


@pytest.fixture
def account(db, member_id):
    """Empty bronze account."""
    return LoyaltyAccount.objects.create(member_id=member_id)


@pytest.fixture
def silver_account(db, member_id):
    """Silver account with 1500 lifetime points, all available."""
    return LoyaltyAccount.objects.create(
        member_id=member_id,
        total_points=1500,
        available_points=1500,
        lifetime_points=1500,
        tier="silver",
    )


@pytest.fixture
def make_stale_earn(db):
    """Create an earn transaction whose expiration is already in the past."""

    def _make(account, points=500, days_ago=1):
        tx = LoyaltyTransaction.objects.create(
            account=account,
            transaction_type=TransactionType.EARN,
            points=points,
            balance_after=account.available_points + points,
            description="Old stay",
            expires_at=timezone.now() - timedelta(days=days_ago),
        )
        account.total_points += points
        account.available_points += points
        account.lifetime_points += points
        account.save()
        return tx

    return _make
