from .driver import PostgresDetails, PostgresDriver

__all__ = ["PostgresDriver", "PostgresDetails"]
