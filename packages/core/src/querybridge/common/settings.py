from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env into os.environ
load_dotenv()

CAN_CONNECT_TIMEOUT_MS = 5000


class Settings(BaseSettings):
    """Process-wide configuration backed by environment variables."""

    report_timezone: str = Field(
        default="",
        validation_alias="REPORT_TIMEZONE",
        description="Timezone applied to native queries on engines that support setting one. Empty disables it.",
    )
    can_connect_timeout_ms: int = Field(
        default=CAN_CONNECT_TIMEOUT_MS,
        validation_alias="CAN_CONNECT_TIMEOUT_MS",
        description="Hard timeout for connectivity checks.",
    )
    databases_config_path: str = Field(default="configs/databases.yaml", validation_alias="DATABASES_CONFIG")
    query_execution_store: str = Field(
        default="memory",
        validation_alias="QUERY_EXECUTION_STORE",
        description="Backend for query execution records: 'memory' or 'sqlite'.",
    )
    query_execution_store_path: str = Field(
        default="data/query_executions.db", validation_alias="QUERY_EXECUTION_STORE_PATH"
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    observability_exporter: str = Field(
        default="none",
        validation_alias="OBSERVABILITY_EXPORTER",
        description="Exporter for metrics: 'none', 'console', 'otlp'.",
    )
    otlp_endpoint: Optional[str] = Field(
        default=None,
        validation_alias="OTEL_EXPORTER_OTLP_ENDPOINT",
        description="Endpoint for OTLP exporter (e.g. http://localhost:4317).",
    )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()

# Configure logging during import
from querybridge.common.logger import configure_logging  # noqa: E402

configure_logging(level=settings.log_level, json_format=(settings.observability_exporter == "otlp"))
