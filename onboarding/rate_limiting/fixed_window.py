import asyncio
import time
from redis.asyncio import Redis
from redis.exceptions import RedisError
from onboarding.rate_limiting.constants import FAIL_OPEN, REDIS_TIMEOUT_SECONDS, USE_IN_MEMORY_FALLBACK, logger
from onboarding.rate_limiting.lua_scripts import LUA_FIXED_WINDOW_INCR_AND_PEXPIRE
from onboarding.rate_limiting.utils import _in_memory_allow


async def redis_allow(redis_client: Redis, key: str, limit: int, window: int):
    """
    Returns (allowed: bool, remaining: int, reset_ts: int)
    """
    pexpire_ms = int(window * 1000)
    script = redis_client.register_script(LUA_FIXED_WINDOW_INCR_AND_PEXPIRE)

    try:
        res = await asyncio.wait_for(script(keys=[key], args=[pexpire_ms]), timeout=REDIS_TIMEOUT_SECONDS)
    except (RedisError, OSError, asyncio.TimeoutError) as e:
        logger.warning("rate_limit.redis_unavailable", extra={"error": str(e)})
        if USE_IN_MEMORY_FALLBACK:
            return await _in_memory_allow(key, limit, window)
        now = int(time.time())
        if FAIL_OPEN:
            return True, max(0, limit - 1), now + window
        return False, 0, now + window

    now = int(time.time())
    if not res or len(res) < 2:
        # conservative fallback: allow
        return True, max(0, limit - 1), now + window

    count = int(res[0])
    ttl_ms = int(res[1])
    reset_ts = now + (ttl_ms // 1000) if ttl_ms > 0 else now + window
    allowed = count <= limit
    remaining = max(0, limit - count) if allowed else 0
    return allowed, remaining, reset_ts
