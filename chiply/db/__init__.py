"""PostgreSQL persistence for clubs, rosters and sessions."""
from .connection import db, Database
from .models import init_db

__all__ = ["db", "Database", "init_db"]
