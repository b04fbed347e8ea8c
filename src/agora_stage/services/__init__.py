# src/agora_stage/services/__init__.py
"""Business logic services for the Agora application."""

from .community import CommunityService
from .posts import PostService, reconcile_counters

__all__ = [
    "CommunityService",
    "PostService",
    "reconcile_counters",
]
