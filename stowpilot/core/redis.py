"""Redis-backed session bookkeeping: revoked refresh tokens and login throttling."""

import redis.asyncio as aioredis

from stowpilot.core.config import settings

_client: aioredis.Redis | None = None

REVOKED_PREFIX = "stowpilot:revoked_refresh:"
FAILED_LOGIN_PREFIX = "stowpilot:failed_login:"
LOCKOUT_WINDOW_SECONDS = 15 * 60
MAX_FAILED_LOGINS = 5


def get_redis() -> aioredis.Redis:
    global _client
    if _client is None:
        _client = aioredis.from_url(settings.redis_url, decode_responses=True)
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


# ─── Refresh token revocation ──────────────────────────────────────────────────

async def revoke_refresh_token(jti: str, ttl_seconds: int) -> None:
    """Remember a refresh token id until it would have expired anyway."""
    if ttl_seconds > 0:
        await get_redis().setex(f"{REVOKED_PREFIX}{jti}", ttl_seconds, "1")


async def is_refresh_token_revoked(jti: str) -> bool:
    return await get_redis().exists(f"{REVOKED_PREFIX}{jti}") == 1


# ─── Login lockout ─────────────────────────────────────────────────────────────

def _failed_login_key(email: str) -> str:
    return f"{FAILED_LOGIN_PREFIX}{email.strip().lower()}"


async def record_failed_login(email: str) -> int:
    """Count a failed login; the window starts at the first failure."""
    r = get_redis()
    key = _failed_login_key(email)
    count = await r.incr(key)
    if count == 1:
        await r.expire(key, LOCKOUT_WINDOW_SECONDS)
    return count


async def is_login_locked(email: str) -> bool:
    count = await get_redis().get(_failed_login_key(email))
    return int(count) >= MAX_FAILED_LOGINS if count else False


async def clear_failed_logins(email: str) -> None:
    await get_redis().delete(_failed_login_key(email))
