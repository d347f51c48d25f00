from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.core.database import get_db
from stowpilot.core.deps import get_current_user
from stowpilot.core.security import hash_password, verify_password
from stowpilot.models.profile import Profile
from stowpilot.schemas.user import PasswordChange, ProfileEnvelope, ProfileResponse, ProfileUpdate

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=ProfileEnvelope)
async def get_profile(user: Profile = Depends(get_current_user)):
    return {"user": ProfileResponse.model_validate(user)}


@router.patch("/me", response_model=ProfileEnvelope)
async def update_profile(
    payload: ProfileUpdate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(user, field, value)

    await db.flush()
    await db.refresh(user)
    return {"user": ProfileResponse.model_validate(user)}


@router.post("/me/change-password", status_code=204)
async def change_password(
    payload: PasswordChange,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not verify_password(payload.current_password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    user.hashed_password = hash_password(payload.new_password)
    await db.flush()
