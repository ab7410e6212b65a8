import pathlib
from typing import List, Union

import yaml
from pydantic import ValidationError

from querybridge_driver_sdk import DatabaseDescriptor

from querybridge.common.logger import get_logger
from querybridge.databases.models import DatabasesFileConfig

logger = get_logger(__name__)


def load_databases(path: Union[str, pathlib.Path]) -> List[DatabaseDescriptor]:
    """Loads database descriptors from a YAML file.

    Args:
        path: Path to the databases YAML file.

    Returns:
        List[DatabaseDescriptor]: One descriptor per configured database.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid YAML or fails validation.
    """
    path = pathlib.Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Databases config not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ValueError(f"Databases config must be a mapping with 'version' and 'databases', got {type(raw).__name__}")

    try:
        config = DatabasesFileConfig.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid databases config in {path}: {e}") from e

    logger.info(f"Loaded {len(config.databases)} database(s) from {path}")
    return [entry.to_descriptor() for entry in config.databases]
