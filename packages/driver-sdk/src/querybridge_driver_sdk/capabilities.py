from enum import Enum


class Feature(str, Enum):
    """Capability tags for optional driver operations."""

    FOREIGN_KEYS = "foreign-keys"
    NESTED_FIELDS = "nested-fields"
    STANDARD_DEVIATION_AGGREGATIONS = "standard-deviation-aggregations"
    SET_TIMEZONE = "set-timezone"
