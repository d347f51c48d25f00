"""
Unit tests for subscription transitions: pure function, no DB.
"""
import pytest

from stowpilot.services.subscription import SubscriptionError, apply_action


class TestUpgrade:
    @pytest.mark.parametrize("target", ["pro", "enterprise"])
    def test_free_upgrades(self, target):
        assert apply_action("free", "active", "upgrade", target) == (target, "active")

    def test_pro_to_enterprise(self):
        assert apply_action("pro", "active", "upgrade", "enterprise") == ("enterprise", "active")

    def test_enterprise_cannot_upgrade(self):
        with pytest.raises(SubscriptionError):
            apply_action("enterprise", "active", "upgrade", "pro")

    def test_tier_required(self):
        with pytest.raises(SubscriptionError, match="Tier is required"):
            apply_action("free", "active", "upgrade", None)


class TestDowngrade:
    def test_to_free(self):
        assert apply_action("pro", "cancelled", "downgrade", "free") == ("free", "active")

    def test_enterprise_to_pro(self):
        assert apply_action("enterprise", "active", "downgrade", "pro") == ("pro", "active")

    def test_free_to_free_rejected(self):
        with pytest.raises(SubscriptionError):
            apply_action("free", "active", "downgrade", "free")

    def test_pro_to_pro_rejected(self):
        with pytest.raises(SubscriptionError):
            apply_action("pro", "active", "downgrade", "pro")


class TestCancelReactivate:
    def test_cancel_keeps_tier(self):
        assert apply_action("pro", "active", "cancel", None) == ("pro", "cancelled")

    def test_free_cannot_cancel(self):
        with pytest.raises(SubscriptionError, match="Free tier"):
            apply_action("free", "active", "cancel", None)

    def test_reactivate(self):
        assert apply_action("pro", "cancelled", "reactivate", None) == ("pro", "active")

    def test_reactivate_requires_cancelled(self):
        with pytest.raises(SubscriptionError, match="not cancelled"):
            apply_action("pro", "active", "reactivate", None)
