from .driver import MySQLDetails, MySQLDriver

__all__ = ["MySQLDriver", "MySQLDetails"]
