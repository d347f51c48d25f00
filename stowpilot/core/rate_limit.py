from slowapi import Limiter
from slowapi.util import get_remote_address

from stowpilot.core.config import settings

# Rate limiter: backed by Redis so limits survive across worker restarts
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.redis_url,
    enabled=settings.rate_limit_enabled,
)
