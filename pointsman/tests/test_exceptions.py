"""Tests for Pointsman error types."""

from pointsman.exceptions import LoyaltyError, PointsmanError


class TestLoyaltyError:
    def test_inherits_from_pointsman_error(self):
        err = LoyaltyError("ACCOUNT_NOT_FOUND")
        assert isinstance(err, PointsmanError)

    def test_default_messages(self):
        err = LoyaltyError("ACCOUNT_NOT_FOUND")
        assert err.message == "Loyalty account not found"
        assert err.code == "ACCOUNT_NOT_FOUND"
        assert str(err) == "[ACCOUNT_NOT_FOUND] Loyalty account not found"

    def test_custom_message(self):
        err = LoyaltyError("INVALID_LIMIT", message="Limit must be between 1 and 50")
        assert err.message == "Limit must be between 1 and 50"

    def test_unknown_code_uses_code_as_message(self):
        assert LoyaltyError("SOMETHING_ELSE").message == "SOMETHING_ELSE"

    def test_as_dict(self):
        err = LoyaltyError("INSUFFICIENT_POINTS", available=10, requested=50)
        assert err.as_dict() == {
            "code": "INSUFFICIENT_POINTS",
            "message": "Insufficient points for redemption",
            "data": {"available": 10, "requested": 50},
        }

    def test_validation_vs_state(self):
        assert LoyaltyError("MISSING_DESCRIPTION").is_validation_error is True
        assert LoyaltyError("INVALID_LIMIT").is_validation_error is True
        assert LoyaltyError("INVALID_DESCRIPTION").is_validation_error is True
        assert LoyaltyError("NEGATIVE_BALANCE").is_validation_error is False
        assert LoyaltyError("ACCOUNT_EXISTS").is_validation_error is False
