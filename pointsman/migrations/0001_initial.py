# Generated migration for LoyaltyAccount and LoyaltyTransaction

import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="LoyaltyAccount",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "member_id",
                    models.UUIDField(
                        help_text="External member (user) identifier",
                        unique=True,
                        verbose_name="member",
                    ),
                ),
                ("total_points", models.IntegerField(default=0, verbose_name="total points")),
                (
                    "available_points",
                    models.IntegerField(
                        default=0,
                        help_text="Points available for redemption",
                        verbose_name="available points",
                    ),
                ),
                (
                    "lifetime_points",
                    models.IntegerField(
                        default=0,
                        help_text="Total points ever credited (never decreases)",
                        verbose_name="lifetime points",
                    ),
                ),
                (
                    "tier",
                    models.CharField(
                        default="bronze",
                        help_text="Tier name from the active loyalty program",
                        max_length=20,
                        verbose_name="tier",
                    ),
                ),
                (
                    "tier_expires_at",
                    models.DateTimeField(blank=True, null=True, verbose_name="tier expires at"),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "loyalty account",
                "verbose_name_plural": "loyalty accounts",
                "db_table": "pointsman_loyalty_account",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(available_points__gte=0),
                        name="pointsman_available_points_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="LoyaltyTransaction",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("earn", "Earn"),
                            ("redeem", "Redeem"),
                            ("expire", "Expire"),
                            ("adjust", "Adjust"),
                            ("bonus", "Bonus"),
                        ],
                        max_length=20,
                        verbose_name="type",
                    ),
                ),
                (
                    "points",
                    models.IntegerField(
                        help_text="Positive for credits, negative for redemption/expiration",
                        verbose_name="points",
                    ),
                ),
                (
                    "balance_after",
                    models.IntegerField(
                        help_text="Available points after this transaction",
                        verbose_name="balance after",
                    ),
                ),
                ("description", models.CharField(max_length=255, verbose_name="description")),
                (
                    "reference_type",
                    models.CharField(
                        blank=True,
                        help_text="Origin of the movement (order, booking, pool_ticket, manual)",
                        max_length=50,
                        verbose_name="reference type",
                    ),
                ),
                (
                    "reference_id",
                    models.UUIDField(blank=True, null=True, verbose_name="reference ID"),
                ),
                (
                    "expires_at",
                    models.DateTimeField(
                        blank=True,
                        db_index=True,
                        null=True,
                        verbose_name="expires at",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at"),
                ),
                (
                    "created_by",
                    models.CharField(blank=True, max_length=100, verbose_name="created by"),
                ),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="transactions",
                        to="pointsman.loyaltyaccount",
                        verbose_name="account",
                    ),
                ),
                (
                    "source",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="expiration",
                        to="pointsman.loyaltytransaction",
                        verbose_name="expired transaction",
                    ),
                ),
            ],
            options={
                "verbose_name": "loyalty transaction",
                "verbose_name_plural": "loyalty transactions",
                "db_table": "pointsman_loyalty_transaction",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["account", "-created_at"],
                        name="pointsman_l_account_4f1c2e_idx",
                    ),
                    models.Index(
                        fields=["account", "transaction_type", "expires_at"],
                        name="pointsman_l_account_9b7d3a_idx",
                    ),
                ],
            },
        ),
    ]
