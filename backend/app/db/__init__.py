from app.db.base import Base
from app.db.session import async_session_maker, engine, get_db, init_db

__all__ = ["Base", "engine", "async_session_maker", "get_db", "init_db"]
