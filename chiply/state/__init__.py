"""Persistence collaborators: PostgreSQL store and Redis snapshot cache."""
from .redis_client import RedisClient, redis_client
from .session_store import SessionStore, session_store

__all__ = ["RedisClient", "redis_client", "SessionStore", "session_store"]
