from .connection import (
    close_db,
    get_engine,
    get_session_maker,
    init_db,
    make_session_maker,
)
from .models import Base

__all__ = [
    "Base",
    "get_engine",
    "get_session_maker",
    "make_session_maker",
    "init_db",
    "close_db",
]
