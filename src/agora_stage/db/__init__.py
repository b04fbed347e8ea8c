# src/agora_stage/db/__init__.py
"""Database configuration and utilities."""

from .session import SessionLocal, get_db, transaction

__all__ = ["get_db", "SessionLocal", "transaction"]
