from .models import DatabaseSyncResult, SyncedField, TableSyncResult
from .orchestrator import SyncOrchestrator

__all__ = ["SyncOrchestrator", "DatabaseSyncResult", "TableSyncResult", "SyncedField"]
