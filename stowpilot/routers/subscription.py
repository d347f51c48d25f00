import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.core.database import get_db
from stowpilot.core.deps import get_current_user
from stowpilot.models.profile import Profile
from stowpilot.schemas.subscription import SubscriptionChange, SubscriptionEnvelope, SubscriptionResponse
from stowpilot.services.subscription import SubscriptionError, apply_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscription", tags=["subscription"])


@router.get("", response_model=SubscriptionEnvelope)
async def get_subscription(user: Profile = Depends(get_current_user)):
    return {"subscription": SubscriptionResponse.model_validate(user)}


@router.post("", response_model=SubscriptionEnvelope)
async def change_subscription(
    payload: SubscriptionChange,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if user.role != "owner":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only owners can change the subscription",
        )
    try:
        tier, sub_status = apply_action(
            user.subscription_tier, user.subscription_status, payload.action, payload.tier
        )
    except SubscriptionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    logger.info(
        "Profile %s subscription %s/%s -> %s/%s",
        user.id, user.subscription_tier, user.subscription_status, tier, sub_status,
    )
    user.subscription_tier = tier
    user.subscription_status = sub_status
    if payload.stripe_customer_id:
        user.stripe_customer_id = payload.stripe_customer_id
    if payload.stripe_subscription_id:
        user.stripe_subscription_id = payload.stripe_subscription_id

    await db.flush()
    return {"subscription": SubscriptionResponse.model_validate(user)}
