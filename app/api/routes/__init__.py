"""
API route modules.
"""

from app.api.routes.health import router as health_router
from app.api.routes.notifications import router as notifications_router
from app.api.routes.system import router as system_router
from app.api.routes.webhook import router as webhook_router

__all__ = ["health_router", "notifications_router", "system_router", "webhook_router"]
