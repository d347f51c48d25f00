import uuid

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.core.database import get_db
from stowpilot.core.security import ACCESS, decode_token
from stowpilot.models.profile import Profile


def _token_from_request(request: Request) -> str | None:
    """Browser sessions carry the access token in a cookie; service callers send a bearer header."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, credentials = auth_header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return request.cookies.get("access_token")


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Profile:
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = _token_from_request(request)
    if not token:
        raise unauthorized

    payload = decode_token(token, ACCESS)
    if payload is None:
        raise unauthorized

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise unauthorized

    result = await db.execute(select(Profile).where(Profile.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise unauthorized
    return user


async def require_owner(user: Profile = Depends(get_current_user)) -> Profile:
    if user.role != "owner":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only owners can manage the team")
    return user
