from typing import Literal

from pydantic import BaseModel, ConfigDict

SUBSCRIPTION_TIERS = Literal["free", "pro", "enterprise"]
SUBSCRIPTION_ACTIONS = Literal["upgrade", "downgrade", "cancel", "reactivate"]


class SubscriptionChange(BaseModel):
    action: SUBSCRIPTION_ACTIONS
    tier: SUBSCRIPTION_TIERS | None = None
    stripe_customer_id: str | None = None
    stripe_subscription_id: str | None = None


class SubscriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    subscription_tier: str
    subscription_status: str
    stripe_customer_id: str | None
    stripe_subscription_id: str | None


class SubscriptionEnvelope(BaseModel):
    subscription: SubscriptionResponse
