from .config import load_databases
from .models import DatabaseConfig, DatabasesFileConfig
from .store import DatabaseStore

__all__ = ["load_databases", "DatabaseConfig", "DatabasesFileConfig", "DatabaseStore"]
