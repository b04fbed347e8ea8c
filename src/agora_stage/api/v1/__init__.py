"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    auth_router,
    communities_router,
    posts_router,
    users_router,
    wallet_router,
)

__all__ = [
    "admin_router",
    "auth_router",
    "communities_router",
    "posts_router",
    "users_router",
    "wallet_router",
]
