from .driver import SQLiteDetails, SQLiteDriver

__all__ = ["SQLiteDriver", "SQLiteDetails"]
