"""Pointsman admin.

Balances are read-only here: every change must go through LoyaltyService
so it is recorded in the ledger.
"""

from django.contrib import admin
from django.utils.html import format_html

from pointsman.models import LoyaltyAccount, LoyaltyTransaction


# ===========================================
# Inline Classes (must be defined before LoyaltyAccountAdmin)
# ===========================================


class LoyaltyTransactionInline(admin.TabularInline):
    model = LoyaltyTransaction
    fk_name = "account"
    extra = 0
    fields = [
        "transaction_type",
        "points",
        "balance_after",
        "description",
        "reference_type",
        "reference_id",
        "expires_at",
        "created_at",
    ]
    readonly_fields = fields
    ordering = ["-created_at"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ===========================================
# LoyaltyAccount Admin
# ===========================================


@admin.register(LoyaltyAccount)
class LoyaltyAccountAdmin(admin.ModelAdmin):
    list_display = [
        "member_id",
        "available_points",
        "total_points",
        "lifetime_points",
        "tier_badge",
        "tier_expires_at",
        "created_at",
    ]
    list_filter = ["tier"]
    search_fields = ["member_id"]
    readonly_fields = [
        "id",
        "member_id",
        "total_points",
        "available_points",
        "lifetime_points",
        "tier",
        "tier_expires_at",
        "created_at",
        "updated_at",
    ]
    inlines = [LoyaltyTransactionInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def tier_badge(self, obj):
        colors = {
            "bronze": "#cd7f32",
            "silver": "#c0c0c0",
            "gold": "#ffd700",
            "platinum": "#e5e4e2",
        }
        color = colors.get(obj.tier, "#6c757d")
        text_color = "#000" if obj.tier in ("gold", "silver", "platinum") else "#fff"
        return format_html(
            '<span style="background:{}; color:{}; padding:2px 8px; '
            'border-radius:3px; font-size:11px;">{}</span>',
            color,
            text_color,
            obj.tier.replace("_", " ").title(),
        )

    tier_badge.short_description = "Tier"


# ===========================================
# LoyaltyTransaction Admin
# ===========================================


@admin.register(LoyaltyTransaction)
class LoyaltyTransactionAdmin(admin.ModelAdmin):
    list_display = [
        "created_at",
        "member_id",
        "transaction_type",
        "points_display",
        "balance_after",
        "description",
        "expires_at",
    ]
    list_filter = ["transaction_type"]
    search_fields = ["account__member_id", "description", "reference_type"]
    readonly_fields = [
        "id",
        "account",
        "transaction_type",
        "points",
        "balance_after",
        "description",
        "reference_type",
        "reference_id",
        "expires_at",
        "source",
        "created_at",
        "created_by",
    ]
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def member_id(self, obj):
        return obj.account.member_id

    member_id.short_description = "Member"

    def points_display(self, obj):
        if obj.points > 0:
            return format_html('<span style="color:green">+{}</span>', obj.points)
        return format_html('<span style="color:red">{}</span>', obj.points)

    points_display.short_description = "Points"
