# Import all routes
from .auth import router as auth_router
from .user import router as user_router
from .health import router as health_router

# All routers that should be included in main app
__all__ = [
    "auth_router",
    "user_router",
    "health_router"
]
