"""Redirect plain-HTTP requests to HTTPS.

Behind a proxy or load balancer the original scheme arrives in the
``X-Forwarded-Proto`` header, which takes precedence over the scheme of the
connection itself.
"""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import RedirectResponse

from nonceauth.core.logging import get_logger

logger = get_logger(__name__)

# Health checks must keep working when hit directly over HTTP inside the cluster.
EXEMPT_PATHS = frozenset({"/health", "/ready"})


class ForceHTTPSMiddleware(BaseHTTPMiddleware):
    """Middleware that redirects HTTP requests to the HTTPS equivalent."""

    @staticmethod
    def is_secure(request: Request) -> bool:
        forwarded = request.headers.get("X-Forwarded-Proto")
        if forwarded:
            return "https" in forwarded.lower()
        return request.url.scheme == "https"

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in EXEMPT_PATHS or self.is_secure(request):
            return await call_next(request)

        https_url = request.url.replace(scheme="https")
        logger.info("Redirecting to HTTPS", path=request.url.path)
        return RedirectResponse(url=str(https_url), status_code=301)
