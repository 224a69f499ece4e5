from .memory import ProductRepository
from .sqlite_store import SQLiteStore

__all__ = ["ProductRepository", "SQLiteStore"]
