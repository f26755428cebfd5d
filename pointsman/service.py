"""
Pointsman public API: the loyalty points ledger.

CORE (ledger):
    LoyaltyService.create_account(member_id)
    LoyaltyService.earn_points(member_id, amount, ...)
    LoyaltyService.redeem_points(member_id, points, ...)
    LoyaltyService.add_bonus_points(member_id, points, description, ...)
    LoyaltyService.adjust_points(member_id, points, reason)
    LoyaltyService.expire_old_points(member_id)
    LoyaltyService.upgrade_tier_if_needed(member_id)

READ (projections):
    get_account, get_account_by_id, get_balance, get_redemption_value,
    get_transactions, get_stats

PURE (no state):
    calculate_points_for_purchase, calculate_redemption_value,
    get_tier_for_points, get_tier_config, get_tiers, get_transaction_types
"""

import logging
import re
import uuid as uuid_lib
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation

from django.utils import timezone
from django.utils.module_loading import import_string

from pointsman import signals
from pointsman.conf import pointsman_settings
from pointsman.exceptions import LoyaltyError
from pointsman.models import (
    LoyaltyAccount,
    LoyaltyTransaction,
    TransactionType,
)
from pointsman.program import LoyaltyProgram, TierConfig
from pointsman.protocols.store import LedgerStore, LoyaltyStats

logger = logging.getLogger(__name__)


_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)

# Match LoyaltyTransaction field max_lengths
_DESCRIPTION_MAX_LENGTH = 255
_REFERENCE_TYPE_MAX_LENGTH = 50


def _get_store() -> LedgerStore:
    """Get configured LedgerStore."""
    return import_string(pointsman_settings.STORE_BACKEND)()


def _parse_uuid(value, code: str) -> uuid_lib.UUID:
    if isinstance(value, uuid_lib.UUID):
        return value
    if not isinstance(value, str) or not _UUID_RE.fullmatch(value):
        raise LoyaltyError(code, value=str(value))
    return uuid_lib.UUID(value)


def _is_whole_number(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class LoyaltyService:
    """
    Loyalty ledger engine.

    Program tables and the persistence collaborator are injected; both
    default to what settings.POINTSMAN configures:

        service = LoyaltyService()
        service.earn_points(member_id, Decimal("42.50"), "order", order_id)

        # Alternate schedule (e.g. in tests)
        service = LoyaltyService(program=LoyaltyProgram(tiers=...))

    Every mutation validates its input first, then runs one atomic block:
    account read under a row lock, transaction append, account update.
    A failure anywhere inside the block leaves nothing behind.
    """

    def __init__(
        self,
        program: LoyaltyProgram | None = None,
        store: LedgerStore | None = None,
    ):
        self.program = program or LoyaltyProgram.from_settings()
        self.store = store or _get_store()

    # ======================================================================
    # ACCOUNTS
    # ======================================================================

    def create_account(self, member_id) -> LoyaltyAccount:
        """
        Open a loyalty account for a member.

        Args:
            member_id: Member UUID

        Returns:
            New LoyaltyAccount (zero balances, lowest tier)

        Raises:
            LoyaltyError: INVALID_MEMBER, ACCOUNT_EXISTS
        """
        member = _parse_uuid(member_id, "INVALID_MEMBER")

        with self.store.atomic():
            if self.store.get_account_by_member_id(member) is not None:
                raise LoyaltyError("ACCOUNT_EXISTS", member_id=str(member))
            account = self._open_account(member)

        signals.account_created.send(sender=LoyaltyAccount, account=account)
        return account

    def get_or_create_account(self, member_id) -> tuple[LoyaltyAccount, bool]:
        """
        Return the member's account, opening one if needed.

        Returns:
            Tuple of (LoyaltyAccount, created: bool)
        """
        member = _parse_uuid(member_id, "INVALID_MEMBER")

        with self.store.atomic():
            account, created = self._get_or_create_for_update(member)

        if created:
            signals.account_created.send(sender=LoyaltyAccount, account=account)
        return account, created

    def get_account(self, member_id) -> LoyaltyAccount | None:
        """Get loyalty account for member."""
        member = _parse_uuid(member_id, "INVALID_MEMBER")
        return self.store.get_account_by_member_id(member)

    def get_account_by_id(self, account_id) -> LoyaltyAccount | None:
        """Get loyalty account by its own ID."""
        pk = _parse_uuid(account_id, "INVALID_ACCOUNT")
        return self.store.get_account_by_id(pk)

    def get_balance(self, member_id) -> int:
        """Get available points. Returns 0 if the member has no account."""
        account = self.get_account(member_id)
        return account.available_points if account else 0

    def get_redemption_value(self, member_id) -> int:
        """Currency value of the member's available points (0 without an account)."""
        return self.program.redemption_value(self.get_balance(member_id))

    # ======================================================================
    # LEDGER OPERATIONS
    # ======================================================================

    def earn_points(
        self,
        member_id,
        amount,
        reference_type: str | None = None,
        reference_id=None,
        description: str | None = None,
        created_by: str = "",
    ) -> LoyaltyTransaction:
        """
        Award points for a purchase.

        Points are floor(floor(amount * points_per_unit) * tier multiplier)
        and expire after the program's expiration period. Opens an account
        for the member if they have none.

        Args:
            member_id: Member UUID
            amount: Purchase amount in currency units (must be positive)
            reference_type: Origin of the purchase (order, booking, ...)
            reference_id: UUID of the originating record
            description: Defaults to a generated summary
            created_by: Who triggered the earn

        Returns:
            Created LoyaltyTransaction

        Raises:
            LoyaltyError: INVALID_MEMBER, INVALID_AMOUNT, INVALID_REFERENCE,
                INVALID_DESCRIPTION
        """
        member = _parse_uuid(member_id, "INVALID_MEMBER")
        amount = self._validate_amount(amount)
        reference = self._validate_reference(reference_id)
        self._validate_reference_type(reference_type)
        self._validate_description(description)

        now = timezone.now()
        with self.store.atomic():
            account, created = self._get_or_create_for_update(member)

            points = self.program.points_for_purchase(amount, account.tier)
            tx = self._append(
                account,
                TransactionType.EARN,
                points,
                description or f"Earned {points} points for a {amount:.2f} purchase",
                reference_type=reference_type,
                reference_id=reference,
                expires_at=now + timedelta(days=self.program.expiration_days),
                created_by=created_by,
            )
            self.store.update_account(
                account,
                total_points=account.total_points + points,
                available_points=account.available_points + points,
                lifetime_points=account.lifetime_points + points,
            )
            previous_tier = self._apply_tier_upgrade(account, now)

        logger.info("Loyalty: member %s earned %d points", member, points)
        self._notify(tx, account, created=created, previous_tier=previous_tier)
        return tx

    def redeem_points(
        self,
        member_id,
        points: int,
        reference_type: str | None = None,
        reference_id=None,
        description: str | None = None,
        created_by: str = "",
    ) -> LoyaltyTransaction:
        """
        Redeem points from the member's available balance.

        Lifetime points (and so tier eligibility) are not affected.

        Args:
            member_id: Member UUID
            points: Points to redeem (positive whole number)
            reference_type: What the points paid for
            reference_id: UUID of the originating record
            description: Defaults to a generated summary
            created_by: Who triggered the redemption

        Returns:
            Created LoyaltyTransaction

        Raises:
            LoyaltyError: INVALID_MEMBER, INVALID_POINTS, INVALID_REFERENCE,
                INVALID_DESCRIPTION, ACCOUNT_NOT_FOUND, INSUFFICIENT_POINTS
        """
        member = _parse_uuid(member_id, "INVALID_MEMBER")
        self._validate_positive_points(points)
        reference = self._validate_reference(reference_id)
        self._validate_reference_type(reference_type)
        self._validate_description(description)

        with self.store.atomic():
            account = self._get_account_for_update(member)

            if account.available_points < points:
                logger.warning(
                    "Loyalty: member %s cannot redeem %d points (available %d)",
                    member,
                    points,
                    account.available_points,
                )
                raise LoyaltyError(
                    "INSUFFICIENT_POINTS",
                    message=(
                        f"Insufficient points. Available: {account.available_points}, "
                        f"Requested: {points}"
                    ),
                    available=account.available_points,
                    requested=points,
                )

            tx = self._append(
                account,
                TransactionType.REDEEM,
                -points,
                description or f"Redeemed {points} points",
                reference_type=reference_type,
                reference_id=reference,
                created_by=created_by,
            )
            self.store.update_account(
                account,
                total_points=account.total_points - points,
                available_points=account.available_points - points,
            )

        logger.info("Loyalty: member %s redeemed %d points", member, points)
        self._notify(tx, account)
        return tx

    def add_bonus_points(
        self,
        member_id,
        points: int,
        description: str,
        expires_in_days: int | None = None,
        created_by: str = "",
    ) -> LoyaltyTransaction:
        """
        Credit bonus points (promotions, goodwill, signup).

        No tier multiplier is applied: points is the final amount.
        Opens an account for the member if they have none.

        Args:
            member_id: Member UUID
            points: Points to credit (positive whole number)
            description: Why the bonus was granted (required for audit)
            expires_in_days: Defaults to the program's expiration period

        Returns:
            Created LoyaltyTransaction

        Raises:
            LoyaltyError: INVALID_MEMBER, INVALID_POINTS, MISSING_DESCRIPTION,
                INVALID_DESCRIPTION, INVALID_EXPIRATION
        """
        member = _parse_uuid(member_id, "INVALID_MEMBER")
        self._validate_positive_points(points)
        description = self._require_text(description, "MISSING_DESCRIPTION")
        if expires_in_days is None:
            expires_in_days = self.program.expiration_days
        elif not _is_whole_number(expires_in_days) or expires_in_days <= 0:
            raise LoyaltyError("INVALID_EXPIRATION", expires_in_days=expires_in_days)

        now = timezone.now()
        with self.store.atomic():
            account, created = self._get_or_create_for_update(member)

            tx = self._append(
                account,
                TransactionType.BONUS,
                points,
                description,
                expires_at=now + timedelta(days=expires_in_days),
                created_by=created_by,
            )
            self.store.update_account(
                account,
                total_points=account.total_points + points,
                available_points=account.available_points + points,
                lifetime_points=account.lifetime_points + points,
            )
            previous_tier = self._apply_tier_upgrade(account, now)

        logger.info("Loyalty: member %s received %d bonus points", member, points)
        self._notify(tx, account, created=created, previous_tier=previous_tier)
        return tx

    def adjust_points(
        self,
        member_id,
        points: int,
        reason: str,
        created_by: str = "",
    ) -> LoyaltyTransaction:
        """
        Manually correct a balance in either direction.

        Positive adjustments count toward lifetime points (and may upgrade
        the tier); negative ones never reduce lifetime points. Adjustments
        do not expire.

        Raises:
            LoyaltyError: INVALID_MEMBER, INVALID_POINTS, MISSING_REASON,
                INVALID_DESCRIPTION, ACCOUNT_NOT_FOUND, NEGATIVE_BALANCE
        """
        member = _parse_uuid(member_id, "INVALID_MEMBER")
        if not _is_whole_number(points) or points == 0:
            raise LoyaltyError(
                "INVALID_POINTS",
                message="Adjustment points must be a non-zero whole number",
                points=points,
            )
        reason = self._require_text(reason, "MISSING_REASON")

        now = timezone.now()
        with self.store.atomic():
            account = self._get_account_for_update(member)

            new_available = account.available_points + points
            if new_available < 0:
                raise LoyaltyError(
                    "NEGATIVE_BALANCE",
                    available=account.available_points,
                    adjustment=points,
                )

            tx = self._append(
                account,
                TransactionType.ADJUST,
                points,
                reason,
                created_by=created_by,
            )
            fields = {
                "total_points": account.total_points + points,
                "available_points": new_available,
            }
            if points > 0:
                fields["lifetime_points"] = account.lifetime_points + points
            self.store.update_account(account, **fields)

            previous_tier = None
            if points > 0:
                previous_tier = self._apply_tier_upgrade(account, now)

        logger.info("Loyalty: member %s points adjusted by %d: %s", member, points, reason)
        self._notify(tx, account, previous_tier=previous_tier)
        return tx

    # ======================================================================
    # EXPIRATION
    # ======================================================================

    def expire_old_points(self, member_id, as_of: datetime | None = None) -> int:
        """
        Expire earned and bonus points past their expiration date.

        Each due earn/bonus transaction gets exactly one EXPIRE transaction
        linked to it, so running the sweep again never expires the same
        points twice. The available balance is clamped at zero when the
        expiring points were already spent. Lifetime points and tier are
        left untouched.

        Args:
            member_id: Member UUID
            as_of: Cutoff (defaults to now)

        Returns:
            Total points expired (0 if none or no account)
        """
        member = _parse_uuid(member_id, "INVALID_MEMBER")
        as_of = as_of or timezone.now()

        with self.store.atomic():
            account = self.store.get_account_by_member_id(member, for_update=True)
            if account is None:
                return 0

            balance = account.available_points
            total_expired = 0
            expired = []
            for source in self.store.get_expiring_points(account, as_of):
                total_expired += source.points
                balance = max(0, balance - source.points)
                expired.append(
                    self.store.add_transaction(
                        account,
                        transaction_type=TransactionType.EXPIRE,
                        points=-source.points,
                        balance_after=balance,
                        # Prefix can push a full-length source description past the column
                        description=f"Points expired from: {source.description}"[
                            :_DESCRIPTION_MAX_LENGTH
                        ],
                        source=source,
                    )
                )

            if total_expired:
                self.store.update_account(
                    account,
                    total_points=account.total_points - total_expired,
                    available_points=balance,
                )

        if total_expired:
            logger.info("Loyalty: member %s had %d points expired", member, total_expired)
            for tx in expired:
                self._notify(tx, account)
        return total_expired

    def expire_all_due(self, as_of: datetime | None = None) -> dict[str, int]:
        """
        Run the expiration sweep over every account with points due.

        Returns:
            Dict of member_id -> points expired, for accounts that lost points
        """
        as_of = as_of or timezone.now()
        results = {}
        for account in self.store.list_accounts_with_expiring_points(as_of):
            expired = self.expire_old_points(account.member_id, as_of=as_of)
            if expired:
                results[str(account.member_id)] = expired
        return results

    # ======================================================================
    # TIERS
    # ======================================================================

    def get_tier_for_points(self, lifetime_points: int) -> str:
        """Highest tier reached by lifetime_points."""
        return self.program.tier_for_points(lifetime_points)

    def upgrade_tier_if_needed(self, member_id) -> LoyaltyAccount | None:
        """
        Move the account up to the tier its lifetime points have reached.

        Never downgrades. Safe to call repeatedly.

        Returns:
            The account (upgraded or not), or None if the member has no account
        """
        member = _parse_uuid(member_id, "INVALID_MEMBER")

        with self.store.atomic():
            account = self.store.get_account_by_member_id(member, for_update=True)
            if account is None:
                return None
            previous_tier = self._apply_tier_upgrade(account, timezone.now())

        if previous_tier is not None:
            signals.tier_upgraded.send(
                sender=LoyaltyAccount,
                account=account,
                previous_tier=previous_tier,
            )
        return account

    def get_tier_config(self) -> list[TierConfig]:
        return list(self.program.tiers)

    def get_tiers(self) -> list[str]:
        return self.program.tier_names()

    @staticmethod
    def get_transaction_types() -> list[str]:
        return list(TransactionType.values)

    # ======================================================================
    # CONVERSIONS
    # ======================================================================

    def calculate_points_for_purchase(self, amount, tier: str | None = None) -> int:
        """Points a purchase of amount earns at tier (lowest tier if omitted)."""
        return self.program.points_for_purchase(amount, tier)

    def calculate_redemption_value(self, points: int) -> int:
        """Currency value of points (100 points = 1 unit by default)."""
        return self.program.redemption_value(points)

    # ======================================================================
    # HISTORY & REPORTING
    # ======================================================================

    def get_transactions(self, member_id, limit: int | None = None) -> list[LoyaltyTransaction]:
        """
        Get transaction history for a member, most recent first.

        Args:
            member_id: Member UUID
            limit: Maximum transactions, between 1 and the program maximum

        Returns:
            List of LoyaltyTransaction ([] if the member has no account)

        Raises:
            LoyaltyError: INVALID_MEMBER, INVALID_LIMIT
        """
        member = _parse_uuid(member_id, "INVALID_MEMBER")
        max_limit = self.program.max_transactions_limit
        if limit is not None and (
            not _is_whole_number(limit) or not 1 <= limit <= max_limit
        ):
            raise LoyaltyError(
                "INVALID_LIMIT",
                message=f"Limit must be between 1 and {max_limit}",
                limit=limit,
            )

        account = self.store.get_account_by_member_id(member)
        if account is None:
            return []
        return self.store.get_transactions(account, limit)

    def get_stats(self) -> LoyaltyStats:
        """Aggregate balances and tier distribution across all accounts."""
        accounts_by_tier = dict.fromkeys(self.program.tier_names(), 0)
        total_accounts = 0
        issued = 0
        redeemed = 0

        for account in self.store.list_accounts():
            total_accounts += 1
            issued += account.lifetime_points
            redeemed += account.lifetime_points - account.available_points
            accounts_by_tier[account.tier] = accounts_by_tier.get(account.tier, 0) + 1

        return LoyaltyStats(
            total_accounts=total_accounts,
            total_points_issued=issued,
            total_points_redeemed=redeemed,
            accounts_by_tier=accounts_by_tier,
        )

    # ======================================================================
    # INTERNALS
    # ======================================================================

    def _open_account(self, member: uuid_lib.UUID) -> LoyaltyAccount:
        account = self.store.create_account(member, tier=self.program.lowest_tier)
        logger.info("Loyalty: account created for member %s", member)
        return account

    def _get_or_create_for_update(
        self,
        member: uuid_lib.UUID,
    ) -> tuple[LoyaltyAccount, bool]:
        """
        Locked get-or-create. MUST be called inside store.atomic().
        """
        account = self.store.get_account_by_member_id(member, for_update=True)
        if account is not None:
            return account, False
        return self._open_account(member), True

    def _get_account_for_update(self, member: uuid_lib.UUID) -> LoyaltyAccount:
        """
        Get account with row-level lock for mutation, or raise.

        MUST be called inside store.atomic().
        """
        account = self.store.get_account_by_member_id(member, for_update=True)
        if account is None:
            raise LoyaltyError("ACCOUNT_NOT_FOUND", member_id=str(member))
        return account

    def _append(
        self,
        account: LoyaltyAccount,
        transaction_type: str,
        points: int,
        description: str,
        reference_type: str | None = None,
        reference_id: uuid_lib.UUID | None = None,
        expires_at: datetime | None = None,
        created_by: str = "",
    ) -> LoyaltyTransaction:
        return self.store.add_transaction(
            account,
            transaction_type=transaction_type,
            points=points,
            balance_after=account.available_points + points,
            # Caller text is length-checked up front; only generated text can overflow
            description=description[:_DESCRIPTION_MAX_LENGTH],
            reference_type=reference_type or "",
            reference_id=reference_id,
            expires_at=expires_at,
            created_by=created_by,
        )

    def _apply_tier_upgrade(self, account: LoyaltyAccount, now: datetime) -> str | None:
        """
        Upgrade account tier from its lifetime points.

        Returns:
            The previous tier when upgraded, None otherwise
        """
        new_tier = self.program.tier_for_points(account.lifetime_points)
        if self.program.rank(new_tier) <= self.program.rank(account.tier):
            return None

        previous_tier = account.tier
        self.store.update_account(
            account,
            tier=new_tier,
            tier_expires_at=now + timedelta(days=self.program.tier_duration_days),
        )
        logger.info(
            "Loyalty: member %s upgraded from %s to %s tier",
            account.member_id,
            previous_tier,
            new_tier,
        )
        return previous_tier

    def _notify(
        self,
        tx: LoyaltyTransaction,
        account: LoyaltyAccount,
        created: bool = False,
        previous_tier: str | None = None,
    ) -> None:
        if created:
            signals.account_created.send(sender=LoyaltyAccount, account=account)
        signals.points_changed.send(sender=LoyaltyTransaction, transaction=tx, account=account)
        if previous_tier is not None:
            signals.tier_upgraded.send(
                sender=LoyaltyAccount,
                account=account,
                previous_tier=previous_tier,
            )

    # ----------------------------------------------------------------------
    # Validation
    # ----------------------------------------------------------------------

    @staticmethod
    def _validate_amount(amount) -> Decimal:
        if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
            raise LoyaltyError("INVALID_AMOUNT", amount=str(amount))
        try:
            value = Decimal(str(amount))
        except InvalidOperation:
            raise LoyaltyError("INVALID_AMOUNT", amount=str(amount))
        if not value.is_finite() or value <= 0:
            raise LoyaltyError("INVALID_AMOUNT", amount=str(amount))
        return value

    @staticmethod
    def _validate_positive_points(points) -> None:
        if not _is_whole_number(points) or points <= 0:
            raise LoyaltyError("INVALID_POINTS", points=points)

    @staticmethod
    def _validate_reference(reference_id) -> uuid_lib.UUID | None:
        if reference_id is None or reference_id == "":
            return None
        return _parse_uuid(reference_id, "INVALID_REFERENCE")

    @staticmethod
    def _validate_reference_type(reference_type) -> None:
        if reference_type is None:
            return
        if not isinstance(reference_type, str) or len(reference_type) > _REFERENCE_TYPE_MAX_LENGTH:
            raise LoyaltyError(
                "INVALID_REFERENCE",
                message=(
                    f"Reference type must be a string of at most "
                    f"{_REFERENCE_TYPE_MAX_LENGTH} characters"
                ),
                reference_type=str(reference_type),
            )

    @staticmethod
    def _validate_description(description) -> None:
        """Optional descriptions: None or empty fall back to a generated one."""
        if description is None or description == "":
            return
        if not isinstance(description, str) or len(description) > _DESCRIPTION_MAX_LENGTH:
            raise LoyaltyError("INVALID_DESCRIPTION", length=len(str(description)))

    @staticmethod
    def _require_text(value, code: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise LoyaltyError(code)
        value = value.strip()
        if len(value) > _DESCRIPTION_MAX_LENGTH:
            raise LoyaltyError("INVALID_DESCRIPTION", length=len(value))
        return value


def get_loyalty_service() -> LoyaltyService:
    """LoyaltyService built from the current settings."""
    return LoyaltyService()
