"""Loyalty transaction model: the append-only points ledger."""

import uuid as uuid_lib

from django.db import models
from django.utils.translation import gettext_lazy as _


class TransactionType(models.TextChoices):
    """Loyalty transaction types."""

    EARN = "earn", _("Earn")
    REDEEM = "redeem", _("Redeem")
    EXPIRE = "expire", _("Expire")
    ADJUST = "adjust", _("Adjust")
    BONUS = "bonus", _("Bonus")


# Transaction types that credit points with an expiration date
EXPIRING_TYPES = (TransactionType.EARN, TransactionType.BONUS)


class LoyaltyTransaction(models.Model):
    """
    Immutable record of a loyalty transaction.

    Every earn, redeem, bonus, adjustment, or expiration is logged here.
    Transactions are append-only: never modified or deleted. Expiring
    points appends an EXPIRE transaction linked to its source through
    ``source``; the one-to-one link guarantees each earn/bonus expires
    at most once.
    """

    id = models.UUIDField(primary_key=True, default=uuid_lib.uuid4, editable=False)
    account = models.ForeignKey(
        "pointsman.LoyaltyAccount",
        on_delete=models.CASCADE,
        related_name="transactions",
        verbose_name=_("account"),
    )

    transaction_type = models.CharField(
        _("type"),
        max_length=20,
        choices=TransactionType.choices,
    )
    points = models.IntegerField(
        _("points"),
        help_text=_("Positive for credits, negative for redemption/expiration"),
    )
    balance_after = models.IntegerField(
        _("balance after"),
        help_text=_("Available points after this transaction"),
    )

    description = models.CharField(_("description"), max_length=255)
    reference_type = models.CharField(
        _("reference type"),
        max_length=50,
        blank=True,
        help_text=_("Origin of the movement (order, booking, pool_ticket, manual)"),
    )
    reference_id = models.UUIDField(_("reference ID"), null=True, blank=True)

    expires_at = models.DateTimeField(_("expires at"), null=True, blank=True, db_index=True)
    source = models.OneToOneField(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="expiration",
        verbose_name=_("expired transaction"),
    )

    created_at = models.DateTimeField(_("created at"), auto_now_add=True, db_index=True)
    created_by = models.CharField(_("created by"), max_length=100, blank=True)

    class Meta:
        db_table = "pointsman_loyalty_transaction"
        verbose_name = _("loyalty transaction")
        verbose_name_plural = _("loyalty transactions")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["account", "-created_at"], name="pointsman_l_account_4f1c2e_idx"),
            models.Index(
                fields=["account", "transaction_type", "expires_at"],
                name="pointsman_l_account_9b7d3a_idx",
            ),
        ]

    def __str__(self):
        sign = "+" if self.points > 0 else ""
        return f"{sign}{self.points}pts — {self.description}"

    @property
    def is_credit(self) -> bool:
        return self.points > 0
