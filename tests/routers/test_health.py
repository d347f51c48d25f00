from redis.exceptions import ConnectionError as RedisConnectionError

from stowpilot.routers import health


class _Redis:
    def __init__(self, error: Exception | None = None):
        self.error = error

    async def ping(self):
        if self.error:
            raise self.error
        return True


class TestHealth:
    async def test_liveness(self, client):
        resp = await client.get("/health")
        assert resp.json() == {"status": "ok", "service": "stowpilot-api", "environment": "development"}

    async def test_database(self, client):
        resp = await client.get("/health/db")
        assert resp.json() == {"status": "ok", "database": "connected"}

    async def test_redis_up(self, client, monkeypatch):
        monkeypatch.setattr(health, "get_redis", lambda: _Redis())
        resp = await client.get("/health/redis")
        assert resp.json() == {"status": "ok", "redis": "connected"}

    async def test_redis_down(self, client, monkeypatch):
        monkeypatch.setattr(health, "get_redis", lambda: _Redis(RedisConnectionError("refused")))
        resp = await client.get("/health/redis")
        assert resp.status_code == 503
        assert resp.json() == {"detail": "Redis unavailable"}

    async def test_api_requires_auth(self, client):
        resp = await client.get("/api/facilities")
        assert resp.status_code == 401
