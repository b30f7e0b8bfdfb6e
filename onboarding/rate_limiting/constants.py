import asyncio
from onboarding.common.logging_setup import get_logger

logger = get_logger("onboarding.rate_limiting")

RATE_LIMIT_PREFIX = "rl"    # redis key prefix
REDIS_TIMEOUT_SECONDS = 0.5
FAIL_OPEN = True                  # if redis is unavailable, allow requests (True) or deny (False)
USE_IN_MEMORY_FALLBACK = True     # allow simple local fallback when redis fails (not distributed)

_in_memory_counters = {}
_in_memory_lock = asyncio.Lock()
