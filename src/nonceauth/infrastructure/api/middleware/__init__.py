"""HTTP middleware."""

from nonceauth.infrastructure.api.middleware.force_https import ForceHTTPSMiddleware

__all__ = ["ForceHTTPSMiddleware"]
