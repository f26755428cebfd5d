"""Pointsman exceptions."""


class PointsmanError(Exception):
    """
    Structured exception carrying a stable machine-readable code.

    Subclasses provide ``_default_messages`` so callers only pass the code
    and any structured data worth reporting.

    Usage:
        try:
            loyalty_service.redeem_points(member_id, 500)
        except LoyaltyError as e:
            if e.code == "INSUFFICIENT_POINTS":
                handle_insufficient(e.data["available"])
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def as_dict(self) -> dict:
        """Serialize for API responses and logs."""
        return {
            "code": self.code,
            "message": self.message,
            "data": self.data,
        }


class LoyaltyError(PointsmanError):
    """
    Ledger operation failure.

    Validation errors are raised before anything is written; state errors
    are raised from inside the atomic block, which rolls back.
    """

    VALIDATION_CODES = frozenset({
        "INVALID_MEMBER",
        "INVALID_ACCOUNT",
        "INVALID_AMOUNT",
        "INVALID_POINTS",
        "INVALID_REFERENCE",
        "INVALID_EXPIRATION",
        "MISSING_DESCRIPTION",
        "MISSING_REASON",
        "INVALID_DESCRIPTION",
        "INVALID_LIMIT",
    })

    _default_messages = {
        # Validation
        "INVALID_MEMBER": "Invalid member ID format",
        "INVALID_ACCOUNT": "Invalid account ID format",
        "INVALID_AMOUNT": "Amount must be positive",
        "INVALID_POINTS": "Points must be a positive whole number",
        "INVALID_REFERENCE": "Invalid reference ID format",
        "INVALID_EXPIRATION": "Expiration must be a positive number of days",
        "MISSING_DESCRIPTION": "Description is required for bonus points",
        "MISSING_REASON": "Reason is required for adjustments",
        "INVALID_DESCRIPTION": "Description must be at most 255 characters",
        "INVALID_LIMIT": "Limit must be between 1 and 1000",
        # State
        "ACCOUNT_EXISTS": "Loyalty account already exists for this member",
        "ACCOUNT_NOT_FOUND": "Loyalty account not found",
        "INSUFFICIENT_POINTS": "Insufficient points for redemption",
        "NEGATIVE_BALANCE": "Adjustment would result in negative balance",
    }

    @property
    def is_validation_error(self) -> bool:
        return self.code in self.VALIDATION_CODES
