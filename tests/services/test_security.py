"""
Unit tests for token signing and typing: pure functions, no DB.
"""
import uuid
from datetime import timedelta

from stowpilot.core.security import (
    ACCESS,
    PASSWORD_RESET,
    REFRESH,
    create_access_token,
    create_password_reset_token,
    create_refresh_token,
    decode_token,
    hash_password,
    password_fingerprint,
)

PROFILE_ID = uuid.UUID("9f1c2d3e-4a5b-4c6d-8e7f-0a1b2c3d4e5f")


class TestTokenTypes:
    def test_access_round_trip(self):
        claims = decode_token(create_access_token(PROFILE_ID), ACCESS)
        assert claims["sub"] == str(PROFILE_ID)

    def test_wrong_type_rejected(self):
        assert decode_token(create_refresh_token(PROFILE_ID), ACCESS) is None
        assert decode_token(create_access_token(PROFILE_ID), REFRESH) is None

    def test_refresh_tokens_have_distinct_jti(self):
        first = decode_token(create_refresh_token(PROFILE_ID), REFRESH)
        second = decode_token(create_refresh_token(PROFILE_ID), REFRESH)
        assert first["jti"] != second["jti"]

    def test_expired(self):
        token = create_access_token(PROFILE_ID, expires_delta=timedelta(seconds=-1))
        assert decode_token(token) is None

    def test_garbage(self):
        assert decode_token("not-a-jwt") is None


class TestPasswordReset:
    def test_bound_to_password_hash(self):
        hashed = hash_password("Storage123")
        claims = decode_token(create_password_reset_token(PROFILE_ID, hashed), PASSWORD_RESET)
        assert claims["pwd"] == password_fingerprint(hashed)
        assert claims["pwd"] != password_fingerprint(hash_password("Storage123"))
