import time
from fastapi import Request
from onboarding.rate_limiting.constants import _in_memory_counters, _in_memory_lock


def _identifier_from_request(request: Request, trust_forwarded_for: bool = False) -> str:
    # X-Forwarded-For is client controlled unless a proxy in front rewrites it
    xff = request.headers.get("X-Forwarded-For") if trust_forwarded_for else None
    if xff:
        client_host = xff.split(",")[0].strip()
    else:
        client_host = request.client.host if request.client else "unknown"
    return client_host or "unknown"


# simple non distributed fallback for redis unavailability , use only for short outages
async def _in_memory_allow(key: str, limit: int, window: int):
    """
    Per-process fixed-window counter.
    Returns (allowed: bool, remaining: int, reset_ts: int)
    """
    async with _in_memory_lock:
        now = int(time.time())
        existing = _in_memory_counters.get(key)
        if not existing or existing["expires_at"] <= now:
            _in_memory_counters[key] = {"count": 1, "expires_at": now + window}
            return True, max(0, limit - 1), now + window

        if existing["count"] >= limit:
            return False, 0, existing["expires_at"]

        existing["count"] += 1
        return True, max(0, limit - existing["count"]), existing["expires_at"]
