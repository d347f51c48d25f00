"""Subscription tier / status transitions.

Billing itself is external; this only decides whether a requested change is
allowed from the profile's current state and what the new state is.
"""

UPGRADES = {
    "free": {"pro", "enterprise"},
    "pro": {"enterprise"},
}


class SubscriptionError(ValueError):
    pass


def apply_action(tier: str, status: str, action: str, target: str | None) -> tuple[str, str]:
    """Return the (tier, status) after `action`, or raise SubscriptionError."""
    if action == "upgrade":
        if target is None:
            raise SubscriptionError("Tier is required for upgrade")
        if target not in UPGRADES.get(tier, set()):
            raise SubscriptionError(f"Cannot upgrade from {tier} to {target}")
        return target, "active"

    if action == "downgrade":
        if target is None:
            raise SubscriptionError("Tier is required for downgrade")
        if target == "free" and tier != "free":
            return "free", "active"
        if target == "pro" and tier == "enterprise":
            return "pro", "active"
        raise SubscriptionError(f"Cannot downgrade from {tier} to {target}")

    if action == "cancel":
        if tier == "free":
            raise SubscriptionError("Free tier cannot be cancelled")
        # tier is kept so the subscription can be reactivated
        return tier, "cancelled"

    if action == "reactivate":
        if status != "cancelled":
            raise SubscriptionError("Subscription is not cancelled")
        return tier, "active"

    raise SubscriptionError(f"Unknown action {action}")
