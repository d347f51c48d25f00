"""
Registration, login (Redis lockout replaced by an in-memory fake), password
reset, profile.
"""
import pytest
from sqlalchemy import select

from stowpilot.core.redis import MAX_FAILED_LOGINS
from stowpilot.core.security import create_access_token, create_password_reset_token, create_refresh_token
from stowpilot.models.profile import Profile
from stowpilot.routers import auth
from tests.helpers import PASSWORD


@pytest.fixture
def fake_redis(monkeypatch):
    failures: dict[str, int] = {}
    revoked: set[str] = set()

    async def record_failed_login(email):
        failures[email] = failures.get(email, 0) + 1
        return failures[email]

    async def is_login_locked(email):
        return failures.get(email, 0) >= MAX_FAILED_LOGINS

    async def clear_failed_logins(email):
        failures.pop(email, None)

    async def revoke_refresh_token(jti, ttl):
        revoked.add(jti)

    async def is_refresh_token_revoked(jti):
        return jti in revoked

    for fn in (record_failed_login, is_login_locked, clear_failed_logins,
               revoke_refresh_token, is_refresh_token_revoked):
        monkeypatch.setattr(auth, fn.__name__, fn)
    return failures


class TestRegister:
    async def test_creates_free_owner(self, client):
        resp = await client.post(
            "/api/auth/register",
            json={"email": "New.Owner@Example.com", "password": PASSWORD, "business_name": "Lockup LLC"},
        )
        assert resp.status_code == 201, resp.text
        user = resp.json()["user"]
        assert user["email"] == "new.owner@example.com"
        assert user["role"] == "owner"
        assert user["subscription_tier"] == "free"
        assert user["subscription_status"] == "active"
        assert "hashed_password" not in user

    async def test_duplicate_email_conflicts(self, client, owner):
        resp = await client.post(
            "/api/auth/register", json={"email": "ALICE@example.com", "password": PASSWORD}
        )
        assert resp.status_code == 409

    async def test_weak_password_rejected(self, client):
        resp = await client.post("/api/auth/register", json={"email": "x@example.com", "password": "password"})
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Invalid input data"}


class TestLogin:
    async def test_success_sets_cookies(self, client, owner, fake_redis):
        resp = await client.post("/api/auth/login", json={"email": owner.email, "password": PASSWORD})
        assert resp.status_code == 200
        body = resp.json()
        assert body["user"]["id"] == str(owner.id)
        assert body["token_type"] == "bearer"
        set_cookies = " ".join(resp.headers.get_list("set-cookie"))
        assert "access_token=" in set_cookies
        assert "refresh_token=" in set_cookies
        assert "HttpOnly" in set_cookies

        me = await client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"}
        )
        assert me.json()["user"]["email"] == owner.email

    async def test_wrong_password(self, client, owner, fake_redis):
        resp = await client.post("/api/auth/login", json={"email": owner.email, "password": "Wrong1234"})
        assert resp.status_code == 401
        assert fake_redis[owner.email] == 1

    async def test_lockout_after_repeated_failures(self, client, owner, fake_redis):
        for _ in range(MAX_FAILED_LOGINS):
            await client.post("/api/auth/login", json={"email": owner.email, "password": "Wrong1234"})

        resp = await client.post("/api/auth/login", json={"email": owner.email, "password": PASSWORD})
        assert resp.status_code == 429

    async def test_refresh_token_is_single_use(self, client, owner, fake_redis):
        token = create_refresh_token(owner.id)
        cookie = {"Cookie": f"refresh_token={token}"}
        first = await client.post("/api/auth/refresh", headers=cookie)
        assert first.status_code == 200
        second = await client.post("/api/auth/refresh", headers=cookie)
        assert second.status_code == 401


class TestProfile:
    async def test_update_profile(self, client, headers):
        resp = await client.patch("/api/users/me", json={"business_name": "Lock & Key"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["user"]["business_name"] == "Lock & Key"

    async def test_change_password(self, client, headers, owner, fake_redis):
        resp = await client.post(
            "/api/users/me/change-password",
            json={"current_password": PASSWORD, "new_password": "Another456"},
            headers=headers,
        )
        assert resp.status_code == 204

        resp = await client.post("/api/auth/login", json={"email": owner.email, "password": "Another456"})
        assert resp.status_code == 200

    async def test_change_password_checks_current(self, client, headers):
        resp = await client.post(
            "/api/users/me/change-password",
            json={"current_password": "Nope12345", "new_password": "Another456"},
            headers=headers,
        )
        assert resp.status_code == 400


@pytest.fixture
def reset_outbox(monkeypatch) -> list[tuple[str, str]]:
    sent: list[tuple[str, str]] = []

    async def send_password_reset_email(to, token, minutes):
        sent.append((to, token))
        return True

    monkeypatch.setattr(auth, "send_password_reset_email", send_password_reset_email)
    return sent


class TestWelcomeEmail:
    async def test_sent_after_profile_is_committed(self, client, session_factory, monkeypatch):
        committed: list[bool] = []

        async def send_welcome_email(to, name):
            async with session_factory() as session:
                found = await session.scalar(select(Profile).where(Profile.email == to))
            committed.append(found is not None)
            return True

        monkeypatch.setattr(auth, "send_welcome_email", send_welcome_email)
        resp = await client.post(
            "/api/auth/register", json={"email": "dana@example.com", "password": PASSWORD}
        )
        assert resp.status_code == 201
        assert committed == [True]


class TestPasswordReset:
    async def test_forgot_password_same_answer_for_unknown_email(self, client, owner, reset_outbox):
        known = await client.post("/api/auth/forgot-password", json={"email": "ALICE@example.com"})
        unknown = await client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()
        assert [to for to, _ in reset_outbox] == [owner.email]

    async def test_reset_then_login_with_new_password(self, client, owner, reset_outbox, fake_redis):
        await client.post("/api/auth/forgot-password", json={"email": owner.email})
        [(_, token)] = reset_outbox

        resp = await client.post(
            "/api/auth/reset-password", json={"token": token, "new_password": "Fresh7890"}
        )
        assert resp.status_code == 204

        resp = await client.post("/api/auth/login", json={"email": owner.email, "password": "Fresh7890"})
        assert resp.status_code == 200

    async def test_token_works_once(self, client, owner, reset_outbox, fake_redis):
        await client.post("/api/auth/forgot-password", json={"email": owner.email})
        [(_, token)] = reset_outbox

        first = await client.post("/api/auth/reset-password", json={"token": token, "new_password": "Fresh7890"})
        assert first.status_code == 204
        second = await client.post("/api/auth/reset-password", json={"token": token, "new_password": "Other7890"})
        assert second.status_code == 400

    async def test_weak_new_password_rejected(self, client, owner):
        token = create_password_reset_token(owner.id, owner.hashed_password)
        resp = await client.post("/api/auth/reset-password", json={"token": token, "new_password": "short"})
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Invalid input data"}

    async def test_access_token_is_not_a_reset_token(self, client, owner):
        resp = await client.post(
            "/api/auth/reset-password",
            json={"token": create_access_token(owner.id), "new_password": "Fresh7890"},
        )
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Invalid or expired reset token"}

    async def test_reset_token_cannot_authenticate(self, client, owner):
        token = create_password_reset_token(owner.id, owner.hashed_password)
        resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
