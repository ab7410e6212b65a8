import pathlib
from typing import Any, Iterable, Mapping, Optional

from querybridge_driver_sdk import DatabaseDescriptor

from querybridge.common.logger import get_logger
from querybridge.common.metrics import configure_metrics
from querybridge.common.settings import Settings
from querybridge.connectivity import ConnectivityChecker
from querybridge.databases.config import load_databases
from querybridge.databases.store import DatabaseStore
from querybridge.execution.store import build_query_execution_store
from querybridge.query_processor import QueryProcessor
from querybridge.registry import DriverRegistry, register_builtin_drivers
from querybridge.sync.orchestrator import SyncOrchestrator

logger = get_logger(__name__)


class QueryBridgeContext:
    """Owns the long-lived services of a querybridge process.

    Args:
        settings: Process settings. Defaults to the module-level settings.
        databases: Explicit databases. When omitted they are loaded from
            ``settings.databases_config_path`` if that file exists.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        databases: Optional[Iterable[DatabaseDescriptor]] = None,
    ):
        if settings is None:
            from querybridge.common.settings import settings as default_settings

            settings = default_settings
        self.settings = settings

        configure_metrics(settings.observability_exporter, settings.otlp_endpoint)

        if databases is None:
            databases = self._load_configured_databases()
        self.databases = DatabaseStore(databases)

        self.registry = register_builtin_drivers(DriverRegistry(engine_lookup=self.databases.engine_of))
        self.connectivity = ConnectivityChecker(self.registry, timeout_ms=settings.can_connect_timeout_ms)
        self.executions = build_query_execution_store(
            settings.query_execution_store, settings.query_execution_store_path
        )
        self.query_processor = QueryProcessor(
            self.registry,
            self.databases,
            self.executions,
            report_timezone=settings.report_timezone,
        )
        self.sync = SyncOrchestrator(self.registry)

    def _load_configured_databases(self):
        path = pathlib.Path(self.settings.databases_config_path)
        if not path.exists():
            logger.info(f"No databases config at {path}; starting with no databases")
            return []
        return load_databases(path)

    def can_connect(self, database_id: int) -> bool:
        return self.connectivity.can_connect(self.databases.get(database_id))

    def can_connect_with_details(self, engine: str, details: Mapping[str, Any], rethrow: bool = False) -> bool:
        return self.connectivity.can_connect_with_details(engine, details, rethrow=rethrow)
