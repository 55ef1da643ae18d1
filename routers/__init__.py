"""API routers for the reference relay."""

from .connect import router as connect_router
from .health import router as health_router
from .info import router as info_router
from .metrics import router as metrics_router
from .proxy import router as proxy_router

__all__ = ["connect_router", "health_router", "info_router", "metrics_router", "proxy_router"]
