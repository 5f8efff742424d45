from __future__ import annotations

from app.api.routes.creators import router as creators_router
from app.api.routes.health import router as health_router
from app.api.routes.posts import router as posts_router
from app.api.routes.subscriptions import router as subscriptions_router
from app.api.routes.uploads import router as uploads_router

__all__ = [
    "creators_router",
    "health_router",
    "posts_router",
    "subscriptions_router",
    "uploads_router",
]
