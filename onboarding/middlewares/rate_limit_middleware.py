from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


class RateLimitHeadersMiddleware(BaseHTTPMiddleware):
    """Expose the counters a per-route rate limit dependency left on request.state."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        rl = getattr(request.state, "rate_limit", None)
        if rl:
            response.headers["X-RateLimit-Limit"] = str(rl["limit"])
            response.headers["X-RateLimit-Remaining"] = str(rl["remaining"])
            response.headers["X-RateLimit-Reset"] = str(rl["reset"])
        return response
