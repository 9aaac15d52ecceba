"""
Secure HTTP headers middleware.

Adds browser-hardening headers to every response. The Content-Security-Policy
is skipped in development so the Swagger UI at /docs can load its CDN assets
locally; HSTS is only sent in production, where the app sits behind HTTPS.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings

SECURE_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=(), payment=()",
}

CONTENT_SECURITY_POLICY = (
    "default-src 'self'; script-src 'self'; style-src 'self' 'unsafe-inline'; "
    "img-src 'self' data: https:; font-src 'self'; connect-src 'self'; "
    "frame-ancestors 'none';"
)

STRICT_TRANSPORT_SECURITY = "max-age=31536000; includeSubDomains; preload"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        response.headers.update(SECURE_HEADERS)
        if not settings.is_development:
            response.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = STRICT_TRANSPORT_SECURITY
        return response
