import datetime
import decimal
import logging
import uuid
from collections.abc import Mapping
from typing import Any, Dict, Type

from .models import BaseType

logger = logging.getLogger(__name__)

_CLASS_TO_BASE_TYPE: Dict[Type[Any], BaseType] = {
    bool: BaseType.BOOLEAN,
    int: BaseType.INTEGER,
    float: BaseType.FLOAT,
    decimal.Decimal: BaseType.DECIMAL,
    str: BaseType.TEXT,
    datetime.datetime: BaseType.DATETIME,
    datetime.date: BaseType.DATE,
    datetime.time: BaseType.TIME,
    uuid.UUID: BaseType.UUID,
}


def class_to_base_type(klass: Type[Any]) -> BaseType:
    """Returns the base type for a class of value returned by a database driver.

    The class hierarchy is walked so subclasses (``bool`` before ``int``,
    ``datetime`` before ``date``) resolve to the most specific mapping.
    Unknown classes fall back to ``BaseType.UNKNOWN`` with a warning.
    """
    for candidate in klass.__mro__:
        if candidate in _CLASS_TO_BASE_TYPE:
            return _CLASS_TO_BASE_TYPE[candidate]
    if issubclass(klass, Mapping):
        return BaseType.DICTIONARY
    logger.warning(
        f"Don't know how to map class '{klass.__name__}' to a base type, falling back to {BaseType.UNKNOWN.value}."
    )
    return BaseType.UNKNOWN


def value_to_base_type(value: Any) -> BaseType:
    return class_to_base_type(type(value))
