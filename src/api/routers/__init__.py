"""API routers package."""

from .health import router as health_router
from .chat import router as chat_router
from .workflows import router as workflows_router
from .settings import router as settings_router
from .usage import router as usage_router
from .tiers import router as tiers_router
from .billing import router as billing_router

__all__ = [
    "health_router",
    "chat_router",
    "workflows_router",
    "settings_router",
    "usage_router",
    "tiers_router",
    "billing_router",
]
