from .notifications import notifications_router
from .users import users_router

__all__ = ["notifications_router", "users_router"]
