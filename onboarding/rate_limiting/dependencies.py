import time
from typing import Optional
from fastapi import HTTPException, Request, status
from onboarding.rate_limiting.constants import RATE_LIMIT_PREFIX, logger
from onboarding.rate_limiting.fixed_window import redis_allow
from onboarding.rate_limiting.utils import _identifier_from_request, _in_memory_allow


def rate_limit_dependency(route_key: Optional[str] = None):
    """Per-client fixed window limit; limit and window come from app settings."""

    async def _dep(request: Request):
        settings = request.app.state.settings
        if not settings.RATE_LIMIT_ENABLED:
            return

        limit = settings.OTP_SEND_RATE_LIMIT
        window = settings.OTP_SEND_RATE_WINDOW
        identifier = _identifier_from_request(request, settings.TRUST_FORWARDED_FOR)
        key = f"{RATE_LIMIT_PREFIX}:ip:{identifier}:{route_key or request.url.path}"

        redis_client = getattr(request.app.state, "redis", None)
        if redis_client is not None:
            allowed, remaining, reset = await redis_allow(redis_client, key, limit, window)
        else:
            allowed, remaining, reset = await _in_memory_allow(key, limit, window)

        request.state.rate_limit = {"limit": limit, "remaining": remaining, "reset": reset}
        if not allowed:
            retry_after = max(0, reset - int(time.time()))
            logger.warning("rate_limit.exceeded", extra={"route": route_key or request.url.path})
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later.",
                headers={"Retry-After": str(retry_after)},
            )

    return _dep
