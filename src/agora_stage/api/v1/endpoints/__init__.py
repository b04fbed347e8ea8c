# src/agora_stage/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .auth import router as auth_router
from .communities import router as communities_router
from .posts import router as posts_router
from .users import router as users_router
from .wallet import router as wallet_router

__all__ = [
    "admin_router",
    "auth_router",
    "communities_router",
    "posts_router",
    "users_router",
    "wallet_router",
]
