import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.core.config import settings
from stowpilot.core.database import get_db
from stowpilot.core.deps import get_current_user
from stowpilot.core.rate_limit import limiter
from stowpilot.core.redis import (
    clear_failed_logins,
    is_login_locked,
    is_refresh_token_revoked,
    record_failed_login,
    revoke_refresh_token,
)
from stowpilot.core.security import (
    PASSWORD_RESET,
    PASSWORD_RESET_MINUTES,
    REFRESH,
    create_access_token,
    create_password_reset_token,
    create_refresh_token,
    decode_token,
    hash_password,
    password_fingerprint,
    verify_password,
)
from stowpilot.models.profile import Profile
from stowpilot.schemas.user import (
    ForgotPassword,
    PasswordReset,
    ProfileCreate,
    ProfileEnvelope,
    ProfileLogin,
    ProfileResponse,
)
from stowpilot.services.mailer import send_password_reset_email, send_welcome_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# httpOnly cookie settings: strict+secure in production, lax in dev for cross-port localhost
_SECURE = settings.environment != "development"
_SAMESITE = "strict" if settings.environment != "development" else "lax"


def _set_auth_cookies(response: Response, user_id: str) -> str:
    access = create_access_token(user_id)
    response.set_cookie(
        key="access_token",
        value=access,
        httponly=True,
        secure=_SECURE,
        samesite=_SAMESITE,
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
    )
    response.set_cookie(
        key="refresh_token",
        value=create_refresh_token(user_id),
        httponly=True,
        secure=_SECURE,
        samesite=_SAMESITE,
        max_age=settings.refresh_token_expire_days * 86400,
        path="/",
    )
    return access


def _remaining_ttl(token_data: dict) -> int:
    exp = token_data.get("exp", 0)
    return max(0, int(exp - datetime.now(timezone.utc).timestamp()))


def _profile_id(token_data: dict) -> uuid.UUID:
    try:
        return uuid.UUID(str(token_data.get("sub")))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )


def _normalise_email(email: str) -> str:
    return email.strip().lower()


@router.post("/register", response_model=ProfileEnvelope, status_code=201)
@limiter.limit("5/hour")
async def register(
    request: Request,
    payload: ProfileCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    email = _normalise_email(payload.email)
    existing = await db.execute(select(Profile).where(func.lower(Profile.email) == email))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    user = Profile(
        email=email,
        hashed_password=hash_password(payload.password),
        full_name=payload.full_name,
        business_name=payload.business_name,
        phone=payload.phone,
        role="owner",
        subscription_tier="free",
        subscription_status="active",
    )
    db.add(user)
    try:
        # the welcome email is only queued for a committed profile
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )
    await db.refresh(user)
    logger.info("Registered profile %s", user.id)

    background_tasks.add_task(send_welcome_email, user.email, user.full_name)
    return {"user": ProfileResponse.model_validate(user)}


@router.post("/login")
@limiter.limit("10/minute;30/hour")
async def login(
    request: Request,
    payload: ProfileLogin,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    email = _normalise_email(payload.email)
    # Lockout check before hitting the DB
    if await is_login_locked(email):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Account temporarily locked due to too many failed attempts. Try again in 15 minutes.",
        )

    result = await db.execute(select(Profile).where(func.lower(Profile.email) == email))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(payload.password, user.hashed_password):
        # unknown emails count too, so responses don't reveal which accounts exist
        await record_failed_login(email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    await clear_failed_logins(email)
    access = _set_auth_cookies(response, str(user.id))
    return {
        "user": ProfileResponse.model_validate(user),
        "access_token": access,
        "token_type": "bearer",
    }


@router.post("/refresh")
async def refresh_token(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    refresh = request.cookies.get("refresh_token")
    if not refresh:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No refresh token",
        )

    token_data = decode_token(refresh, REFRESH)
    if token_data is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )

    jti = token_data.get("jti")
    if jti and await is_refresh_token_revoked(jti):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
        )

    user = await db.get(Profile, _profile_id(token_data))
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    # rotation: the presented refresh token is single-use
    if jti:
        await revoke_refresh_token(jti, _remaining_ttl(token_data))

    _set_auth_cookies(response, str(user.id))
    return {"ok": True}


@router.post("/logout", status_code=204)
async def logout(request: Request, response: Response):
    refresh = request.cookies.get("refresh_token")
    if refresh:
        token_data = decode_token(refresh, REFRESH)
        if token_data and token_data.get("jti"):
            await revoke_refresh_token(token_data["jti"], _remaining_ttl(token_data))

    response.delete_cookie(key="access_token", path="/")
    response.delete_cookie(key="refresh_token", path="/")


@router.get("/me", response_model=ProfileEnvelope)
async def get_me(user: Profile = Depends(get_current_user)):
    return {"user": ProfileResponse.model_validate(user)}


# ─── Password reset ──────────────────────────────────────────────────────────

_RESET_SENT = {"message": "If that email is registered, a password reset link has been sent"}


@router.post("/forgot-password")
@limiter.limit("5/hour")
async def forgot_password(
    request: Request,
    payload: ForgotPassword,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    """Same answer whether or not the address has an account."""
    email = _normalise_email(payload.email)
    result = await db.execute(select(Profile).where(func.lower(Profile.email) == email))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        logger.info("Password reset requested for unknown or inactive email")
        return _RESET_SENT

    token = create_password_reset_token(user.id, user.hashed_password)
    background_tasks.add_task(send_password_reset_email, user.email, token, PASSWORD_RESET_MINUTES)
    logger.info("Password reset issued for profile %s", user.id)
    return _RESET_SENT


@router.post("/reset-password", status_code=204)
@limiter.limit("10/hour")
async def reset_password(
    request: Request,
    payload: PasswordReset,
    db: AsyncSession = Depends(get_db),
):
    invalid = HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Invalid or expired reset token",
    )
    token_data = decode_token(payload.token, PASSWORD_RESET)
    if token_data is None:
        raise invalid

    try:
        profile_id = uuid.UUID(str(token_data.get("sub")))
    except ValueError:
        raise invalid
    user = await db.get(Profile, profile_id)
    # a token stops working as soon as the password it was issued against changes
    if (
        user is None
        or not user.is_active
        or token_data.get("pwd") != password_fingerprint(user.hashed_password)
    ):
        raise invalid

    user.hashed_password = hash_password(payload.new_password)
    await db.flush()
    await clear_failed_logins(user.email)
    logger.info("Password reset completed for profile %s", user.id)
