"""Password hashing, signed session tokens and at-rest encryption.

All tokens are HS256 JWTs under API_SECRET_KEY whose `sub` is a profile id.
The `type` claim keeps them apart: an access token is never accepted where
a refresh or password-reset token is expected, and vice versa.
"""
import hashlib
import uuid
from datetime import datetime, timedelta, timezone

from cryptography.fernet import Fernet
from jose import JWTError, jwt
from passlib.context import CryptContext

from stowpilot.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS = "access"
REFRESH = "refresh"
PASSWORD_RESET = "password_reset"

PASSWORD_RESET_MINUTES = 30


# ─── Password hashing ──────────────────────────────────
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def password_fingerprint(hashed_password: str) -> str:
    """Changes whenever the stored hash does, so a reset link dies once used."""
    return hashlib.sha256(hashed_password.encode()).hexdigest()[:16]


# ─── Signed tokens ─────────────────────────────────────
def _sign(profile_id: uuid.UUID | str, token_type: str, lifetime: timedelta, **claims) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(profile_id),
        "type": token_type,
        "iat": now,
        "exp": now + lifetime,
        **claims,
    }
    return jwt.encode(payload, settings.api_secret_key, algorithm=settings.algorithm)


def create_access_token(profile_id: uuid.UUID | str, expires_delta: timedelta | None = None) -> str:
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    return _sign(profile_id, ACCESS, lifetime)


def create_refresh_token(profile_id: uuid.UUID | str) -> str:
    # jti is what /auth/refresh and /auth/logout put on the blacklist
    return _sign(
        profile_id,
        REFRESH,
        timedelta(days=settings.refresh_token_expire_days),
        jti=uuid.uuid4().hex,
    )


def create_password_reset_token(profile_id: uuid.UUID | str, hashed_password: str) -> str:
    return _sign(
        profile_id,
        PASSWORD_RESET,
        timedelta(minutes=PASSWORD_RESET_MINUTES),
        pwd=password_fingerprint(hashed_password),
    )


def decode_token(token: str, expected_type: str | None = None) -> dict | None:
    """Claims of a valid, unexpired token, or None.

    With expected_type, a token of any other type is treated as invalid.
    """
    try:
        payload = jwt.decode(token, settings.api_secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if expected_type is not None and payload.get("type") != expected_type:
        return None
    return payload


# ─── Fernet (customer identification numbers) ──────────
def get_fernet() -> Fernet:
    return Fernet(settings.encryption_key.encode())


def encrypt_value(value: str) -> str:
    return get_fernet().encrypt(value.encode()).decode()


def decrypt_value(encrypted: str) -> str:
    """Raises cryptography.fernet.InvalidToken if the key has changed."""
    return get_fernet().decrypt(encrypted.encode()).decode()
