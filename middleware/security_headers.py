"""Security Headers Middleware

Adds browser security headers to every API response, the same set a
helmet-style setup would send for a JSON API consumed by a browser client.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import config


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware that adds security headers to all HTTP responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        if not config.SECURITY_HEADERS_ENABLED:
            return response

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"

        # Legacy XSS filter; modern browsers rely on CSP
        response.headers["X-XSS-Protection"] = "0"

        # Only meaningful when served over HTTPS
        if config.HSTS_ENABLED:
            # max-age: 31536000 seconds = 1 year
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        response.headers["Referrer-Policy"] = "no-referrer"

        response.headers["Cross-Origin-Resource-Policy"] = "same-site"

        # JSON responses never need to load anything
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        return response
