from .driver import SQLServerDetails, SQLServerDriver

__all__ = ["SQLServerDriver", "SQLServerDetails"]
