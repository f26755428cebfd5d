"""Loyalty account model: one ledger header per member."""

import uuid as uuid_lib

from django.db import models
from django.utils.translation import gettext_lazy as _


class LoyaltyTier(models.TextChoices):
    """Loyalty tiers, lowest first."""

    BRONZE = "bronze", _("Bronze")
    SILVER = "silver", _("Silver")
    GOLD = "gold", _("Gold")
    PLATINUM = "platinum", _("Platinum")


class LoyaltyAccount(models.Model):
    """
    Member loyalty account.

    One account per member. Balances are only changed by LoyaltyService,
    which appends a LoyaltyTransaction for every movement.

    - total_points: net of every movement, expirations included
    - available_points: spendable balance, never negative
    - lifetime_points: positive points ever credited, never decreases;
      the only input to tier derivation
    """

    id = models.UUIDField(primary_key=True, default=uuid_lib.uuid4, editable=False)
    member_id = models.UUIDField(
        _("member"),
        unique=True,
        help_text=_("External member (user) identifier"),
    )

    total_points = models.IntegerField(_("total points"), default=0)
    available_points = models.IntegerField(
        _("available points"),
        default=0,
        help_text=_("Points available for redemption"),
    )
    lifetime_points = models.IntegerField(
        _("lifetime points"),
        default=0,
        help_text=_("Total points ever credited (never decreases)"),
    )

    tier = models.CharField(
        _("tier"),
        max_length=20,
        default=LoyaltyTier.BRONZE,
        help_text=_("Tier name from the active loyalty program"),
    )
    tier_expires_at = models.DateTimeField(_("tier expires at"), null=True, blank=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        db_table = "pointsman_loyalty_account"
        verbose_name = _("loyalty account")
        verbose_name_plural = _("loyalty accounts")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(available_points__gte=0),
                name="pointsman_available_points_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.member_id}: {self.available_points}pts | {self.tier}"
