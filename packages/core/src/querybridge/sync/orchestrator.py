from typing import Dict, Set

from querybridge_driver_sdk import (
    DatabaseDescriptor,
    Driver,
    Feature,
    FieldDescriptor,
    ForeignKeyDescriptor,
    SpecialType,
    TableDescriptor,
)

from querybridge.common.logger import get_logger
from querybridge.registry import DriverRegistry
from querybridge.sync.models import DatabaseSyncResult, SyncedField, TableSyncResult

logger = get_logger(__name__)

URL_PERCENT_THRESHOLD = 0.95
PREVIEW_AVERAGE_LENGTH_THRESHOLD = 50


class SyncOrchestrator:
    """Introspects databases through their drivers and derives field metadata."""

    def __init__(self, registry: DriverRegistry):
        self.registry = registry

    def sync_database(self, database: DatabaseDescriptor) -> DatabaseSyncResult:
        driver = self.registry.resolve(database.engine)
        logger.info(f"Syncing database {database.id} ({driver})")

        def _sync() -> DatabaseSyncResult:
            refs = sorted(driver.active_tables(database), key=lambda ref: ref.full_name)
            tables = [self._sync_table(driver, TableDescriptor.from_ref(ref, database)) for ref in refs]
            return DatabaseSyncResult(database_id=database.id, engine=database.engine, tables=tables)

        result = driver.sync_in_context(database, _sync)
        logger.info(f"Synced {len(result.tables)} table(s) of database {database.id}")
        return result

    def sync_table(self, table: TableDescriptor) -> TableSyncResult:
        driver = self.registry.resolve(table.database.engine)
        return driver.sync_in_context(table.database, lambda: self._sync_table(driver, table))

    def _sync_table(self, driver: Driver, table: TableDescriptor) -> TableSyncResult:
        logger.debug(f"Syncing table {table.ref.full_name}")
        columns = driver.active_columns(table)
        primary_keys = driver.table_primary_keys(table)
        foreign_keys: Dict[str, ForeignKeyDescriptor] = {}
        if driver.supports(Feature.FOREIGN_KEYS):
            foreign_keys = {fk.fk_column_name: fk for fk in driver.table_foreign_keys(table)}

        fields = [
            self._sync_field(driver, FieldDescriptor(name=name, base_type=base_type, table=table), primary_keys, foreign_keys)
            for name, base_type in columns.items()
        ]
        return TableSyncResult(
            table=table.ref,
            fields=fields,
            foreign_keys=sorted(foreign_keys.values(), key=lambda fk: fk.fk_column_name),
        )

    def _sync_field(
        self,
        driver: Driver,
        field: FieldDescriptor,
        primary_keys: Set[str],
        foreign_keys: Dict[str, ForeignKeyDescriptor],
    ) -> SyncedField:
        special_type = None
        preview_display = True
        if field.name in primary_keys:
            special_type = SpecialType.ID
        elif field.name in foreign_keys:
            special_type = SpecialType.FK

        if field.is_textual:
            if special_type is None and driver.field_percent_urls(field) >= URL_PERCENT_THRESHOLD:
                special_type = SpecialType.URL
            if driver.field_avg_length(field) > PREVIEW_AVERAGE_LENGTH_THRESHOLD:
                preview_display = False

        field = field.model_copy(update={"special_type": special_type, "preview_display": preview_display})
        field = driver.driver_specific_field_sync(field) or field
        return SyncedField(
            name=field.name,
            base_type=field.base_type,
            special_type=field.special_type,
            preview_display=field.preview_display,
        )
