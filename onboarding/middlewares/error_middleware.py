from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from onboarding.common.custom_exceptions import server_error_response


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Innermost middleware: unhandled errors become the 500 envelope here, so
    request id and CORS headers are still applied on the way out."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return server_error_response(request, exc)
