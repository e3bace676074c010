"""API routers."""

from nonceauth.infrastructure.api.routes.user_router import router as user_router

__all__ = ["user_router"]
