from .context import QueryBridgeContext
from .registry import DriverRegistry, register_builtin_drivers

__all__ = ["QueryBridgeContext", "DriverRegistry", "register_builtin_drivers"]
